# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes.

Sessions are stateless JWT pairs: login/register hand out an access token
(short-lived) and a refresh token (long-lived). POST /refresh trades a
refresh token for a new pair; logout only tells the client to drop its
tokens.
"""

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth
from ..errors import error_response
from ..services import get_services
from ..validation import REGISTER_POLICY, require_fields, validate_payload

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, message: str) -> dict:
    tokens = get_services().tokens.issue(user)
    return {
        "status": "success",
        "message": message,
        **tokens.to_dict(),
        "user": {
            "id": user.id,
            "email": user.email,
            "fullName": user.full_name,
            "role": user.role.value,
        },
    }


@auth_bp.post("/register")
def register_route():
    """Self-registration; new accounts always get role USER."""
    data = validate_payload(payload=request.get_json(silent=True), policy=REGISTER_POLICY, partial=False)

    result = get_services().auth.register(
        email=data["email"],
        password=data["password"],
        full_name=data["full_name"],
    )
    if not result.ok:
        return error_response(result.error)

    return jsonify(_session_payload(result.value, "User registered successfully")), 201


@auth_bp.post("/login")
def login_route():
    data = require_fields(request.get_json(silent=True), "email", "password")

    result = get_services().auth.authenticate(str(data["email"]), str(data["password"]))
    if not result.ok:
        return error_response(result.error)

    return jsonify(_session_payload(result.value, "Login successful"))


@auth_bp.post("/refresh")
def refresh_route():
    data = require_fields(request.get_json(silent=True), "refreshToken")

    result = get_services().tokens.refresh(str(data["refreshToken"]))
    if not result.ok:
        return error_response(result.error)

    return jsonify({"status": "success", **result.value.to_dict()})


@auth_bp.get("/me")
@require_auth
def me_route():
    result = get_services().auth.get_user(g.current_user.user_id)
    if not result.ok:
        return error_response(result.error)

    user = result.value
    return jsonify({
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role.value,
        "enabled": user.enabled,
    })


@auth_bp.post("/logout")
@require_auth
def logout_route():
    # Nothing is stored server-side; the client discards its tokens
    return jsonify({"status": "success", "message": "Logged out successfully"})
