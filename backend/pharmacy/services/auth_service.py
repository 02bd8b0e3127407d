# Overview: Service-layer operations for accounts; registration, login and admin toggles.

"""
Account service.

Passwords are hashed with bcrypt (cost from BCRYPT_ROUNDS). Login does not
distinguish "no such user", "wrong password" and "disabled account": all
three are InvalidCredentials so the endpoint cannot reveal which emails are registered.
"""

from __future__ import annotations

import logging

import bcrypt

from ..domain import Role, User
from ..errors import ErrorKind, Result
from ..repositories import Repositories
from ..validation import ConflictError, validate_password


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash password using bcrypt; validated for length before hashing."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash
        return False


class AuthService:
    def __init__(self, repos: Repositories, *, bcrypt_rounds: int = 12, logger: logging.Logger | None = None):
        self._repos = repos
        self._rounds = bcrypt_rounds
        self._log = logger or logging.getLogger(__name__)

    def register(self, *, email: str, password: str, full_name: str, role: Role = Role.USER) -> Result[User]:
        """
        Create an account. Raises PasswordValidationError for a short password;
        a taken email is a DuplicateEmail result.
        """
        password_hash = hash_password(password, self._rounds)

        def _op():
            try:
                user = self._repos.users.add(
                    email=email,
                    password_hash=password_hash,
                    full_name=full_name,
                    role=role,
                )
            except ConflictError as exc:
                return Result.failure(ErrorKind.DUPLICATE_EMAIL, str(exc))
            return Result.success(user)

        result = self._repos.run_atomic(_op)
        if result.ok:
            self._log.info("Registered user id=%s role=%s", result.value.id, result.value.role.value)
        return result

    def authenticate(self, email: str, password: str) -> Result[User]:
        user = self._repos.users.get_by_email(email or "")
        if user is None or not user.enabled or not verify_password(password or "", user.password_hash):
            self._log.warning("Failed login for %s", email)
            return Result.failure(ErrorKind.INVALID_CREDENTIALS, "Invalid email or password")
        return Result.success(user)

    def get_user(self, user_id: int) -> Result[User]:
        user = self._repos.users.get(user_id)
        if user is None:
            return Result.failure(ErrorKind.USER_NOT_FOUND, "User not found", userId=user_id)
        return Result.success(user)

    def get_user_by_email(self, email: str) -> Result[User]:
        user = self._repos.users.get_by_email(email)
        if user is None:
            return Result.failure(ErrorKind.USER_NOT_FOUND, "User not found", email=email)
        return Result.success(user)

    def list_users(self) -> list[User]:
        return self._repos.users.list()

    def count_users(self) -> int:
        return self._repos.users.count()

    def _update(self, user_id: int, changes: dict) -> Result[User]:
        def _op():
            user = self._repos.users.update(user_id, changes)
            if user is None:
                return Result.failure(ErrorKind.USER_NOT_FOUND, "User not found", userId=user_id)
            return Result.success(user)

        return self._repos.run_atomic(_op)

    def set_enabled(self, user_id: int, enabled: bool) -> Result[User]:
        result = self._update(user_id, {"enabled": enabled})
        if result.ok:
            self._log.info("User id=%s enabled=%s", user_id, enabled)
        return result

    def set_role(self, user_id: int, role: Role) -> Result[User]:
        result = self._update(user_id, {"role": role})
        if result.ok:
            self._log.info("User id=%s role=%s", user_id, role.value)
        return result
