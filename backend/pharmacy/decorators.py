# Overview: Request guards for API routes (bearer token and admin role).

from functools import wraps

from flask import g, request

from .errors import ErrorKind, ServiceError, error_response
from .services import get_services


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid access token.

    Sets g.current_user to the decoded Claims (userId, email, role).
    Returns 401 NoToken / InvalidToken / TokenExpired otherwise. Storage is
    never consulted here; the token alone is the identity.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return error_response(ServiceError(ErrorKind.NO_TOKEN, "No token provided"))

        result = get_services().tokens.verify_access(token)
        if not result.ok:
            return error_response(result.error)

        g.current_user = result.value
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require role ADMIN. Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        claims = getattr(g, "current_user", None)
        if claims is None:
            return error_response(ServiceError(ErrorKind.NO_TOKEN, "No token provided"))
        if not claims.is_admin:
            return error_response(ServiceError(ErrorKind.INSUFFICIENT_ROLE, "Admin access required"))
        return f(*args, **kwargs)

    return decorated_function
