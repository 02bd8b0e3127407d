# Overview: Storage interfaces injected into the services.

"""
Repository interfaces.

Every backend hands out frozen domain records and accepts plain field
dicts for writes. Writes are only issued inside Repositories.run_atomic(),
which gives the caller an all-or-nothing unit:

- memory: one re-entrant lock held for the whole unit, snapshot restored
  on failure
- sql: one database transaction, rolled back on failure, retried on
  lock/deadlock errors

A unit "fails" when the callable raises or returns a Result that is not ok.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Iterable, TypeVar

from ..domain import (
    Category,
    NewOrderItem,
    Order,
    OrderStatus,
    Product,
    Role,
    ShippingInfo,
    User,
)

T = TypeVar("T")

PRODUCT_FIELDS = frozenset({
    "name", "description", "price", "discount", "stock_quantity",
    "brand", "category_id", "enabled",
})
CATEGORY_FIELDS = frozenset({"name", "description", "enabled"})
USER_FIELDS = frozenset({"full_name", "role", "enabled", "password_hash"})


def unit_failed(result) -> bool:
    """True when a run_atomic callable returned a failed Result."""
    return getattr(result, "ok", True) is False


class UserRepository(ABC):
    @abstractmethod
    def get(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup."""

    @abstractmethod
    def add(self, *, email: str, password_hash: str, full_name: str, role: Role) -> User:
        """Raises ConflictError when the email is taken."""

    @abstractmethod
    def update(self, user_id: int, changes: dict) -> User | None: ...

    @abstractmethod
    def list(self) -> list[User]: ...

    @abstractmethod
    def count(self) -> int: ...


class CategoryRepository(ABC):
    @abstractmethod
    def get(self, category_id: int, *, include_disabled: bool = False) -> Category | None: ...

    @abstractmethod
    def add(self, fields: dict) -> Category: ...

    @abstractmethod
    def update(self, category_id: int, changes: dict) -> Category | None: ...

    @abstractmethod
    def list(self, *, include_disabled: bool = False) -> list[Category]: ...


class ProductRepository(ABC):
    @abstractmethod
    def get(self, product_id: int, *, include_disabled: bool = False, for_update: bool = False) -> Product | None: ...

    @abstractmethod
    def add(self, fields: dict) -> Product: ...

    @abstractmethod
    def update(self, product_id: int, changes: dict) -> Product | None: ...

    @abstractmethod
    def list(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        include_disabled: bool = False,
    ) -> list[Product]: ...

    @abstractmethod
    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        """
        Compare-and-swap decrement.

        Succeeds only if the product is enabled and still has at least
        `quantity` units; otherwise nothing changes and False is returned.
        """


class OrderRepository(ABC):
    @abstractmethod
    def get(self, order_id: int) -> Order | None: ...

    @abstractmethod
    def add(
        self,
        *,
        user_id: int,
        status: OrderStatus,
        total_amount,
        shipping: ShippingInfo,
        items: Iterable[NewOrderItem],
    ) -> Order: ...

    @abstractmethod
    def update_status(self, order_id: int, status: OrderStatus) -> Order | None: ...

    @abstractmethod
    def list(self, *, user_id: int | None = None) -> list[Order]:
        """Newest first."""


class Repositories(ABC):
    """Bundle of repositories sharing one atomicity boundary."""

    users: UserRepository
    categories: CategoryRepository
    products: ProductRepository
    orders: OrderRepository

    @abstractmethod
    def run_atomic(self, func: Callable[[], T]) -> T: ...
