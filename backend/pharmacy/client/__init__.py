from .session import SessionClient, SessionError
from .token_storage import MemoryTokenStorage, TokenStorage

__all__ = ["SessionClient", "SessionError", "MemoryTokenStorage", "TokenStorage"]
