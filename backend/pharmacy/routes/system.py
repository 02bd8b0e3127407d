# Overview: Liveness endpoint.

from flask import Blueprint, current_app

from ..services import get_services
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


@system_bp.get("/health")
def health():
    """
    Liveness check.

    Touches the repositories once so a broken database shows up as 503.
    """
    try:
        users = get_services().auth.count_users()
    except Exception:
        current_app.logger.exception("Health check failed")
        return {
            "status": "unhealthy",
            "timestamp": to_utc_z(utcnow()),
            "error": "Storage error",
        }, 503

    return {
        "status": "ok",
        "timestamp": to_utc_z(utcnow()),
        "backend": current_app.config["REPOSITORY_BACKEND"],
        "users": users,
    }
