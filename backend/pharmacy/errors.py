# Overview: Error taxonomy, service Result type and HTTP translation.

"""
Services never raise for expected business failures. They return a Result
holding either a value or a ServiceError tagged with an ErrorKind. Routes
translate a ServiceError to an HTTP response through error_response(), the
only place that knows about status codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from flask import jsonify

T = TypeVar("T")


class ErrorKind(str, Enum):
    # AuthError
    NO_TOKEN = "NoToken"
    INVALID_TOKEN = "InvalidToken"
    TOKEN_EXPIRED = "TokenExpired"
    INVALID_CREDENTIALS = "InvalidCredentials"
    USER_DISABLED = "UserDisabled"
    # AuthzError
    INSUFFICIENT_ROLE = "InsufficientRole"
    NOT_ORDER_OWNER = "NotOrderOwner"
    # NotFoundError
    PRODUCT_NOT_FOUND = "ProductNotFound"
    ORDER_NOT_FOUND = "OrderNotFound"
    CATEGORY_NOT_FOUND = "CategoryNotFound"
    USER_NOT_FOUND = "UserNotFound"
    ROUTE_NOT_FOUND = "RouteNotFound"
    # ValidationError
    VALIDATION_FAILED = "ValidationFailed"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INVALID_STATUS = "InvalidStatus"
    # ConflictError
    DUPLICATE_EMAIL = "DuplicateEmail"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.NO_TOKEN: 401,
    ErrorKind.INVALID_TOKEN: 401,
    ErrorKind.TOKEN_EXPIRED: 401,
    ErrorKind.INVALID_CREDENTIALS: 401,
    ErrorKind.USER_DISABLED: 401,
    ErrorKind.INSUFFICIENT_ROLE: 403,
    ErrorKind.NOT_ORDER_OWNER: 403,
    ErrorKind.PRODUCT_NOT_FOUND: 404,
    ErrorKind.ORDER_NOT_FOUND: 404,
    ErrorKind.CATEGORY_NOT_FOUND: 404,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.ROUTE_NOT_FOUND: 404,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.INSUFFICIENT_STOCK: 400,
    ErrorKind.INVALID_STATUS: 400,
    ErrorKind.DUPLICATE_EMAIL: 409,
}


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    message: str
    details: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        body = {
            "status": "fail",
            "error": self.kind.value,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class ResultError(Exception):
    """Raised by Result.unwrap() on a failed result."""

    def __init__(self, error: ServiceError):
        super().__init__(f"{error.kind.value}: {error.message}")
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: ServiceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, **details) -> "Result[T]":
        return cls(error=ServiceError(kind, message, details))

    def unwrap(self) -> T:
        if self.error is not None:
            raise ResultError(self.error)
        return self.value


def error_response(error: ServiceError):
    return jsonify(error.to_dict()), error.kind.http_status
