# Overview: In-memory reference backend (dicts guarded by one re-entrant lock).

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Callable, Iterable, TypeVar

from ..domain import (
    Category,
    NewOrderItem,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Role,
    ShippingInfo,
    User,
)
from ..money import to_money
from ..time_utils import utcnow
from ..validation import ConflictError
from .base import (
    CATEGORY_FIELDS,
    PRODUCT_FIELDS,
    USER_FIELDS,
    CategoryRepository,
    OrderRepository,
    ProductRepository,
    Repositories,
    UserRepository,
    unit_failed,
)

T = TypeVar("T")


class MemoryStore:
    """Shared state for the memory repositories."""

    def __init__(self):
        self.lock = threading.RLock()
        self.users: dict[int, User] = {}
        self.categories: dict[int, Category] = {}
        self.products: dict[int, Product] = {}
        self.orders: dict[int, Order] = {}
        self.counters = {"users": 0, "categories": 0, "products": 0, "orders": 0, "order_items": 0}

    def next_id(self, name: str) -> int:
        self.counters[name] += 1
        return self.counters[name]

    def snapshot(self) -> tuple:
        # Records are frozen, so shallow copies of the maps are enough
        return (
            dict(self.users),
            dict(self.categories),
            dict(self.products),
            dict(self.orders),
            dict(self.counters),
        )

    def restore(self, snapshot: tuple) -> None:
        users, categories, products, orders, counters = snapshot
        self.users = users
        self.categories = categories
        self.products = products
        self.orders = orders
        self.counters = counters


def _apply(record, changes: dict, allowed: frozenset):
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
    return replace(record, **changes, updated_at=utcnow())


class MemoryUserRepository(UserRepository):
    def __init__(self, store: MemoryStore):
        self._store = store

    def get(self, user_id: int) -> User | None:
        with self._store.lock:
            return self._store.users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        needle = email.strip().lower()
        with self._store.lock:
            for user in self._store.users.values():
                if user.email == needle:
                    return user
        return None

    def add(self, *, email: str, password_hash: str, full_name: str, role: Role) -> User:
        with self._store.lock:
            if self.get_by_email(email) is not None:
                raise ConflictError("User with this email already exists")
            now = utcnow()
            user = User(
                id=self._store.next_id("users"),
                email=email.strip().lower(),
                password_hash=password_hash,
                full_name=full_name,
                role=role,
                enabled=True,
                created_at=now,
                updated_at=now,
            )
            self._store.users[user.id] = user
            return user

    def update(self, user_id: int, changes: dict) -> User | None:
        with self._store.lock:
            user = self._store.users.get(user_id)
            if user is None:
                return None
            updated = _apply(user, changes, USER_FIELDS)
            self._store.users[user_id] = updated
            return updated

    def list(self) -> list[User]:
        with self._store.lock:
            return sorted(self._store.users.values(), key=lambda u: u.id)

    def count(self) -> int:
        with self._store.lock:
            return len(self._store.users)


class MemoryCategoryRepository(CategoryRepository):
    def __init__(self, store: MemoryStore):
        self._store = store

    def get(self, category_id: int, *, include_disabled: bool = False) -> Category | None:
        with self._store.lock:
            category = self._store.categories.get(category_id)
        if category is None or (not category.enabled and not include_disabled):
            return None
        return category

    def add(self, fields: dict) -> Category:
        with self._store.lock:
            now = utcnow()
            category = Category(
                id=self._store.next_id("categories"),
                name=fields["name"],
                description=fields.get("description"),
                enabled=fields.get("enabled", True),
                created_at=now,
                updated_at=now,
            )
            self._store.categories[category.id] = category
            return category

    def update(self, category_id: int, changes: dict) -> Category | None:
        with self._store.lock:
            category = self._store.categories.get(category_id)
            if category is None:
                return None
            updated = _apply(category, changes, CATEGORY_FIELDS)
            self._store.categories[category_id] = updated
            return updated

    def list(self, *, include_disabled: bool = False) -> list[Category]:
        with self._store.lock:
            categories = sorted(self._store.categories.values(), key=lambda c: c.id)
        return [c for c in categories if include_disabled or c.enabled]


class MemoryProductRepository(ProductRepository):
    def __init__(self, store: MemoryStore):
        self._store = store

    def get(self, product_id: int, *, include_disabled: bool = False, for_update: bool = False) -> Product | None:
        # for_update is satisfied by the lock run_atomic already holds
        with self._store.lock:
            product = self._store.products.get(product_id)
        if product is None or (not product.enabled and not include_disabled):
            return None
        return product

    def add(self, fields: dict) -> Product:
        with self._store.lock:
            now = utcnow()
            discount = fields.get("discount")
            product = Product(
                id=self._store.next_id("products"),
                name=fields["name"],
                description=fields.get("description"),
                price=to_money(fields["price"]),
                discount=discount,
                stock_quantity=fields.get("stock_quantity", 0),
                brand=fields.get("brand"),
                category_id=fields.get("category_id"),
                enabled=fields.get("enabled", True),
                created_at=now,
                updated_at=now,
            )
            self._store.products[product.id] = product
            return product

    def update(self, product_id: int, changes: dict) -> Product | None:
        with self._store.lock:
            product = self._store.products.get(product_id)
            if product is None:
                return None
            if "price" in changes:
                changes = {**changes, "price": to_money(changes["price"])}
            updated = _apply(product, changes, PRODUCT_FIELDS)
            self._store.products[product_id] = updated
            return updated

    def list(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        include_disabled: bool = False,
    ) -> list[Product]:
        with self._store.lock:
            products = sorted(self._store.products.values(), key=lambda p: p.id)
        if not include_disabled:
            products = [p for p in products if p.enabled]
        if category_id is not None:
            products = [p for p in products if p.category_id == category_id]
        if search:
            needle = search.strip().lower()
            products = [
                p for p in products
                if needle in p.name.lower() or needle in (p.description or "").lower()
            ]
        return products

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        with self._store.lock:
            product = self._store.products.get(product_id)
            if product is None or not product.enabled or product.stock_quantity < quantity:
                return False
            self._store.products[product_id] = replace(
                product,
                stock_quantity=product.stock_quantity - quantity,
                updated_at=utcnow(),
            )
            return True


class MemoryOrderRepository(OrderRepository):
    def __init__(self, store: MemoryStore):
        self._store = store

    def get(self, order_id: int) -> Order | None:
        with self._store.lock:
            return self._store.orders.get(order_id)

    def add(
        self,
        *,
        user_id: int,
        status: OrderStatus,
        total_amount,
        shipping: ShippingInfo,
        items: Iterable[NewOrderItem],
    ) -> Order:
        with self._store.lock:
            now = utcnow()
            order_id = self._store.next_id("orders")
            order_items = tuple(
                OrderItem(
                    id=self._store.next_id("order_items"),
                    order_id=order_id,
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                    total=item.total,
                )
                for item in items
            )
            order = Order(
                id=order_id,
                user_id=user_id,
                status=status,
                total_amount=to_money(total_amount),
                shipping=shipping,
                items=order_items,
                created_at=now,
                updated_at=now,
            )
            self._store.orders[order_id] = order
            return order

    def update_status(self, order_id: int, status: OrderStatus) -> Order | None:
        with self._store.lock:
            order = self._store.orders.get(order_id)
            if order is None:
                return None
            updated = replace(order, status=status, updated_at=utcnow())
            self._store.orders[order_id] = updated
            return updated

    def list(self, *, user_id: int | None = None) -> list[Order]:
        with self._store.lock:
            orders = list(self._store.orders.values())
        if user_id is not None:
            orders = [o for o in orders if o.user_id == user_id]
        return sorted(orders, key=lambda o: o.id, reverse=True)


class MemoryRepositories(Repositories):
    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()
        self.users = MemoryUserRepository(self.store)
        self.categories = MemoryCategoryRepository(self.store)
        self.products = MemoryProductRepository(self.store)
        self.orders = MemoryOrderRepository(self.store)

    def run_atomic(self, func: Callable[[], T]) -> T:
        with self.store.lock:
            snapshot = self.store.snapshot()
            try:
                result = func()
            except Exception:
                self.store.restore(snapshot)
                raise
            if unit_failed(result):
                self.store.restore(snapshot)
            return result
