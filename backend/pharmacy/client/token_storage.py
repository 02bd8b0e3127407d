"""Where a SessionClient keeps its token pair."""

from __future__ import annotations

from abc import ABC, abstractmethod


class TokenStorage(ABC):
    @property
    @abstractmethod
    def access_token(self) -> str | None: ...

    @property
    @abstractmethod
    def refresh_token(self) -> str | None: ...

    @abstractmethod
    def set_tokens(self, access_token: str, refresh_token: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemoryTokenStorage(TokenStorage):
    """Process-local storage; the default."""

    def __init__(self, access_token: str | None = None, refresh_token: str | None = None):
        self._access_token = access_token
        self._refresh_token = refresh_token

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token

    def clear(self) -> None:
        self._access_token = None
        self._refresh_token = None
