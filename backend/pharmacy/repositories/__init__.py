# Overview: Repository backend selection.

from __future__ import annotations

from .base import (
    CategoryRepository,
    OrderRepository,
    ProductRepository,
    Repositories,
    UserRepository,
)
from .memory import MemoryRepositories

BACKENDS = ("memory", "sql")


def build_repositories(backend: str) -> Repositories:
    if backend == "memory":
        return MemoryRepositories()
    if backend == "sql":
        from .sql import SqlRepositories
        return SqlRepositories()
    raise ValueError(f"Unknown repository backend {backend!r}; expected one of {', '.join(BACKENDS)}")


__all__ = [
    "BACKENDS",
    "build_repositories",
    "CategoryRepository",
    "MemoryRepositories",
    "OrderRepository",
    "ProductRepository",
    "Repositories",
    "UserRepository",
]
