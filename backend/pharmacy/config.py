from __future__ import annotations

import os
import re
from datetime import timedelta

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": "seconds", "s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str | int | timedelta) -> timedelta:
    """
    Parse "15m" / "7d" / "3600" style lifetimes into a timedelta.

    A bare number is seconds.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    APP_ENV = os.environ.get("APP_ENV", "production")
    # Stack traces in error bodies only in development
    EXPOSE_STACK_TRACES = APP_ENV == "development"

    # "memory" (reference store) or "sql" (Flask-SQLAlchemy)
    REPOSITORY_BACKEND = os.environ.get("REPOSITORY_BACKEND", "memory")

    # SQLite DB stored in backend/instance/pharmacy.sqlite3 when REPOSITORY_BACKEND=sql
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pharmacy.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Access and refresh tokens are signed with distinct secrets
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-access-secret-change-me")
    JWT_REFRESH_SECRET = os.environ.get("JWT_REFRESH_SECRET", "dev-refresh-secret-change-me")
    JWT_ALGORITHM = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_IN = parse_duration(os.environ.get("JWT_EXPIRES_IN", "15m"))
    JWT_REFRESH_EXPIRES_IN = parse_duration(os.environ.get("JWT_REFRESH_EXPIRES_IN", "7d"))

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CORS_ORIGINS = _env_list(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )
    PORT = int(os.environ.get("PORT", "5000"))

    SEED_DEMO_DATA = _env_bool("SEED_DEMO_DATA", False)
    DEFAULT_ADMIN_EMAIL = os.environ.get("DEFAULT_ADMIN_EMAIL", "admin@almawrid.com")
    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "50"))
    TOP_PRODUCTS_LIMIT = 10

    # "open" accepts any status change, "strict" follows the fulfilment graph
    ORDER_TRANSITION_POLICY = os.environ.get("ORDER_TRANSITION_POLICY", "open")
