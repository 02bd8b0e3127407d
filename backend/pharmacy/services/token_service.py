# Overview: Service-layer operations for tokens; signs, verifies and refreshes JWT pairs.

"""
Stateless JWT sessions.

Access and refresh tokens carry the same claims (userId, email, role, iat,
exp, jti) but are signed with distinct secrets, so one can never stand in
for the other. Nothing is stored server-side; logout is a client concern.

Refresh re-reads the user so a role change or a disabled account takes
effect on the next refresh instead of living on for the refresh lifetime.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt

from ..domain import Claims, Role, TokenPair, User
from ..errors import ErrorKind, Result
from ..repositories import UserRepository

REQUIRED_CLAIMS = ["userId", "email", "role", "exp", "iat"]


class TokenService:
    def __init__(
        self,
        users: UserRepository,
        *,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        logger: logging.Logger | None = None,
    ):
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use distinct secrets")
        self._users = users
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl
        self._refresh_ttl = refresh_ttl
        self._algorithm = algorithm
        self._log = logger or logging.getLogger(__name__)

    def _encode(self, user: User, secret: str, ttl: timedelta, now: datetime) -> str:
        payload = {
            "userId": user.id,
            "email": user.email,
            "role": user.role.value,
            "iat": now,
            "exp": now + ttl,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def issue(self, user: User) -> TokenPair:
        now = datetime.now(timezone.utc)
        return TokenPair(
            access_token=self._encode(user, self._access_secret, self._access_ttl, now),
            refresh_token=self._encode(user, self._refresh_secret, self._refresh_ttl, now),
        )

    def _decode(self, token: str, secret: str) -> Result[Claims]:
        if not token or not isinstance(token, str):
            return Result.failure(ErrorKind.INVALID_TOKEN, "Invalid token")
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            return Result.failure(ErrorKind.TOKEN_EXPIRED, "Token expired")
        except jwt.InvalidTokenError:
            return Result.failure(ErrorKind.INVALID_TOKEN, "Invalid token")

        try:
            claims = Claims(
                user_id=int(payload["userId"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                token_id=str(payload.get("jti") or ""),
            )
        except (TypeError, ValueError):
            return Result.failure(ErrorKind.INVALID_TOKEN, "Invalid token")
        return Result.success(claims)

    def verify_access(self, token: str) -> Result[Claims]:
        return self._decode(token, self._access_secret)

    def verify_refresh(self, token: str) -> Result[Claims]:
        return self._decode(token, self._refresh_secret)

    def refresh(self, refresh_token: str) -> Result[TokenPair]:
        decoded = self.verify_refresh(refresh_token)
        if not decoded.ok:
            return Result(error=decoded.error)

        user = self._users.get(decoded.value.user_id)
        if user is None or not user.enabled:
            self._log.warning("Refresh rejected for user_id=%s", decoded.value.user_id)
            return Result.failure(ErrorKind.USER_DISABLED, "User not found or disabled")

        return Result.success(self.issue(user))
