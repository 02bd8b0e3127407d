from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from .domain import OrderLine, Role, ShippingInfo
from .money import MAX_PRICE, to_money

MIN_PASSWORD_LENGTH = 6

# Widest value an INTEGER column holds on every supported database
MAX_DB_INT = 2**31 - 1

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet the length requirement."""


def coerce_int(key: str, value: Any) -> int:
    number = _parse_int(key, value)
    if not -MAX_DB_INT - 1 <= number <= MAX_DB_INT:
        raise ValidationError(f"{key} is out of range")
    return number


def _parse_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        if "e" in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def coerce_positive_int(key: str, value: Any) -> int:
    number = coerce_int(key, value)
    if number <= 0:
        raise ValidationError(f"{key} must be a positive integer")
    return number


def coerce_non_negative_int(key: str, value: Any) -> int:
    number = coerce_int(key, value)
    if number < 0:
        raise ValidationError(f"{key} must be >= 0")
    return number


def _coerce_decimal(key: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float, str, Decimal)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError(f"{key} must be a number")
        if not number.is_finite():
            raise ValidationError(f"{key} must be a finite number")
        return number
    raise ValidationError(f"{key} must be a number")


def coerce_money(key: str, value: Any) -> Decimal:
    amount = _coerce_decimal(key, value)
    if amount < 0:
        raise ValidationError(f"{key} must be >= 0")
    if amount > MAX_PRICE:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE:,}")
    return to_money(amount)


def coerce_percent(key: str, value: Any) -> Decimal:
    percent = _coerce_decimal(key, value)
    if percent < 0 or percent > 100:
        raise ValidationError(f"{key} must be between 0 and 100")
    return percent.quantize(Decimal("0.01"))


def coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{key} must be a boolean")


def coerce_text(key: str, value: Any) -> str:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a string")
    return str(value).strip()


def coerce_email(key: str, value: Any) -> str:
    email = coerce_text(key, value).lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"{key} must be a valid email address")
    return email


def coerce_role(key: str, value: Any) -> Role:
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"{key} must be one of: {', '.join(r.value for r in Role)}")


def validate_password(password: Any) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


def coerce_password(key: str, value: Any) -> str:
    # Not stripped: whitespace is part of the password
    return validate_password(value)


@dataclass(frozen=True)
class FieldRule:
    attr: str
    coerce: Callable[[str, Any], Any]
    nullable: bool = False
    max_length: int | None = None


@dataclass(frozen=True)
class ValidationPolicy:
    """
    Central policy layer:
    - fields: JSON key -> rule (security boundary, nothing else is writable)
    - required_on_create: JSON keys required for POST
    """
    fields: dict[str, FieldRule]
    required_on_create: set[str] = field(default_factory=set)


PRODUCT_POLICY = ValidationPolicy(
    fields={
        "name": FieldRule("name", coerce_text, max_length=255),
        "description": FieldRule("description", coerce_text, nullable=True),
        "price": FieldRule("price", coerce_money),
        "discount": FieldRule("discount", coerce_percent, nullable=True),
        "stockQuantity": FieldRule("stock_quantity", coerce_non_negative_int),
        "brand": FieldRule("brand", coerce_text, nullable=True, max_length=128),
        "categoryId": FieldRule("category_id", coerce_positive_int, nullable=True),
        "enabled": FieldRule("enabled", coerce_bool),
    },
    required_on_create={"name", "price"},
)

CATEGORY_POLICY = ValidationPolicy(
    fields={
        "name": FieldRule("name", coerce_text, max_length=128),
        "description": FieldRule("description", coerce_text, nullable=True),
        "enabled": FieldRule("enabled", coerce_bool),
    },
    required_on_create={"name"},
)

REGISTER_POLICY = ValidationPolicy(
    fields={
        "email": FieldRule("email", coerce_email, max_length=255),
        "password": FieldRule("password", coerce_password),
        "fullName": FieldRule("full_name", coerce_text, max_length=255),
    },
    required_on_create={"email", "password", "fullName"},
)


def validate_payload(*, payload: Any, policy: ValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a policy.

    Returns a dict keyed by record attribute names holding only the
    fields the client sent.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(k for k in policy.required_on_create if payload.get(k) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for key in payload:
        if key not in policy.fields:
            raise ValidationError(f"Field not allowed: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        rule = policy.fields[key]

        if raw is None:
            if not rule.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[rule.attr] = None
            continue

        value = rule.coerce(key, raw)

        if isinstance(value, str):
            if value == "" and not rule.nullable:
                raise ValidationError(f"{key} cannot be blank")
            if rule.max_length and len(value) > rule.max_length:
                raise ValidationError(f"{key} exceeds max length {rule.max_length}")

        patch[rule.attr] = value

    return patch


def require_fields(payload: Any, *keys: str) -> dict:
    """Presence check for small request bodies (login, refresh, toggles)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = [k for k in keys if payload.get(k) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return payload


_SHIPPING_KEYS = {
    "shippingAddress": "address",
    "shippingCity": "city",
    "shippingState": "state",
    "shippingZipCode": "zip_code",
    "shippingCountry": "country",
}


def parse_order_request(payload: Any) -> tuple[list[OrderLine], ShippingInfo]:
    """
    Checkout body -> (lines, shipping).

    Only the shape is checked here; quantity and emptiness rules belong to
    the order service so every caller gets them.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not isinstance(items, list):
        raise ValidationError("items must be a list")

    lines = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{index}] must be an object")
        if item.get("productId") is None or item.get("quantity") is None:
            raise ValidationError(f"items[{index}] requires productId and quantity")
        lines.append(OrderLine(
            product_id=coerce_positive_int(f"items[{index}].productId", item["productId"]),
            quantity=coerce_int(f"items[{index}].quantity", item["quantity"]),
        ))

    shipping = {}
    for key, attr in _SHIPPING_KEYS.items():
        raw = payload.get(key)
        shipping[attr] = coerce_text(key, raw) if raw is not None else None

    return lines, ShippingInfo(**shipping)
