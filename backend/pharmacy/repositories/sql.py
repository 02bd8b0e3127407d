# Overview: Flask-SQLAlchemy backend for the repository interfaces.

"""
SQL repositories.

Writes only flush; SqlRepositories.run_atomic() owns commit/rollback so
a whole checkout is a single transaction. Money columns are integer cents
and discounts basis points; conversion happens here and nowhere else.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError

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
from ..extensions import db
from ..models import (
    Category as CategoryModel,
    Order as OrderModel,
    OrderItem as OrderItemModel,
    Product as ProductModel,
    User as UserModel,
)
from ..money import percent_to_bps, to_cents
from ..time_utils import utcnow
from ..validation import MAX_DB_INT, ConflictError
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
from .concurrency import lock_for_update, run_unit_with_retry

T = TypeVar("T")


def _check_fields(changes: dict, allowed: frozenset) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _in_id_range(record_id: int) -> bool:
    # Larger ids cannot exist and would overflow the driver's INTEGER binding
    return 0 < record_id <= MAX_DB_INT


def _product_columns(fields: dict) -> dict:
    columns = {}
    for key, value in fields.items():
        if key == "price":
            columns["price_cents"] = to_cents(value)
        elif key == "discount":
            columns["discount_bps"] = percent_to_bps(value)
        else:
            columns[key] = value
    return columns


class SqlUserRepository(UserRepository):
    def get(self, user_id: int) -> User | None:
        if not _in_id_range(user_id):
            return None
        obj = db.session.get(UserModel, user_id)
        return obj.to_domain() if obj else None

    def _find_by_email(self, email: str) -> UserModel | None:
        return db.session.query(UserModel).filter(
            sa.func.lower(UserModel.email) == email.strip().lower()
        ).first()

    def get_by_email(self, email: str) -> User | None:
        obj = self._find_by_email(email)
        return obj.to_domain() if obj else None

    def add(self, *, email: str, password_hash: str, full_name: str, role: Role) -> User:
        if self._find_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        obj = UserModel(
            email=email.strip().lower(),
            password_hash=password_hash,
            full_name=full_name,
            role=role.value,
            enabled=True,
        )
        db.session.add(obj)
        try:
            db.session.flush()
        except IntegrityError as exc:
            # Concurrent registration won the unique constraint
            raise ConflictError("User with this email already exists") from exc
        return obj.to_domain()

    def update(self, user_id: int, changes: dict) -> User | None:
        _check_fields(changes, USER_FIELDS)
        if not _in_id_range(user_id):
            return None
        obj = db.session.get(UserModel, user_id)
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value.value if isinstance(value, Role) else value)
        obj.updated_at = utcnow()
        db.session.flush()
        return obj.to_domain()

    def list(self) -> list[User]:
        rows = db.session.query(UserModel).order_by(UserModel.id.asc()).all()
        return [row.to_domain() for row in rows]

    def count(self) -> int:
        return db.session.query(sa.func.count(UserModel.id)).scalar() or 0


class SqlCategoryRepository(CategoryRepository):
    def get(self, category_id: int, *, include_disabled: bool = False) -> Category | None:
        if not _in_id_range(category_id):
            return None
        obj = db.session.get(CategoryModel, category_id)
        if obj is None or (not obj.enabled and not include_disabled):
            return None
        return obj.to_domain()

    def add(self, fields: dict) -> Category:
        _check_fields(fields, CATEGORY_FIELDS)
        obj = CategoryModel(**fields)
        db.session.add(obj)
        db.session.flush()
        return obj.to_domain()

    def update(self, category_id: int, changes: dict) -> Category | None:
        _check_fields(changes, CATEGORY_FIELDS)
        if not _in_id_range(category_id):
            return None
        obj = db.session.get(CategoryModel, category_id)
        if obj is None:
            return None
        for key, value in changes.items():
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        db.session.flush()
        return obj.to_domain()

    def list(self, *, include_disabled: bool = False) -> list[Category]:
        query = db.session.query(CategoryModel)
        if not include_disabled:
            query = query.filter(CategoryModel.enabled.is_(True))
        return [row.to_domain() for row in query.order_by(CategoryModel.id.asc()).all()]


class SqlProductRepository(ProductRepository):
    def get(self, product_id: int, *, include_disabled: bool = False, for_update: bool = False) -> Product | None:
        if not _in_id_range(product_id):
            return None
        query = db.session.query(ProductModel).filter(ProductModel.id == product_id)
        if for_update:
            query = lock_for_update(query)
        obj = query.first()
        if obj is None or (not obj.enabled and not include_disabled):
            return None
        return obj.to_domain()

    def add(self, fields: dict) -> Product:
        _check_fields(fields, PRODUCT_FIELDS)
        obj = ProductModel(**_product_columns(fields))
        db.session.add(obj)
        db.session.flush()
        return obj.to_domain()

    def update(self, product_id: int, changes: dict) -> Product | None:
        _check_fields(changes, PRODUCT_FIELDS)
        if not _in_id_range(product_id):
            return None
        obj = db.session.get(ProductModel, product_id)
        if obj is None:
            return None
        for key, value in _product_columns(changes).items():
            setattr(obj, key, value)
        obj.updated_at = utcnow()
        db.session.flush()
        return obj.to_domain()

    def list(
        self,
        *,
        category_id: int | None = None,
        search: str | None = None,
        include_disabled: bool = False,
    ) -> list[Product]:
        query = db.session.query(ProductModel)
        if not include_disabled:
            query = query.filter(ProductModel.enabled.is_(True))
        if category_id is not None:
            query = query.filter(ProductModel.category_id == category_id)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(sa.or_(
                sa.func.lower(ProductModel.name).like(pattern),
                sa.func.lower(sa.func.coalesce(ProductModel.description, "")).like(pattern),
            ))
        return [row.to_domain() for row in query.order_by(ProductModel.id.asc()).all()]

    def decrement_stock(self, product_id: int, quantity: int) -> bool:
        if not _in_id_range(product_id):
            return False
        table = ProductModel.__table__
        stmt = (
            sa.update(table)
            .where(
                table.c.id == product_id,
                table.c.enabled.is_(True),
                table.c.stock_quantity >= quantity,
            )
            .values(stock_quantity=table.c.stock_quantity - quantity, updated_at=utcnow())
        )
        db.session.flush()
        result = db.session.execute(stmt)
        # Loaded Product rows are now stale; nothing is pending after the flush above
        db.session.expire_all()
        return result.rowcount == 1


class SqlOrderRepository(OrderRepository):
    def get(self, order_id: int) -> Order | None:
        if not _in_id_range(order_id):
            return None
        obj = db.session.get(OrderModel, order_id)
        return obj.to_domain() if obj else None

    def add(
        self,
        *,
        user_id: int,
        status: OrderStatus,
        total_amount,
        shipping: ShippingInfo,
        items: Iterable[NewOrderItem],
    ) -> Order:
        obj = OrderModel(
            user_id=user_id,
            status=status.value,
            total_cents=to_cents(total_amount),
            shipping_address=shipping.address,
            shipping_city=shipping.city,
            shipping_state=shipping.state,
            shipping_zip_code=shipping.zip_code,
            shipping_country=shipping.country,
            items=[
                OrderItemModel(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price_cents=to_cents(item.price),
                    total_cents=to_cents(item.total),
                )
                for item in items
            ],
        )
        db.session.add(obj)
        db.session.flush()
        return obj.to_domain()

    def update_status(self, order_id: int, status: OrderStatus) -> Order | None:
        if not _in_id_range(order_id):
            return None
        obj = lock_for_update(db.session.query(OrderModel).filter(OrderModel.id == order_id)).first()
        if obj is None:
            return None
        obj.status = status.value
        obj.updated_at = utcnow()
        db.session.flush()
        return obj.to_domain()

    def list(self, *, user_id: int | None = None) -> list[Order]:
        query = db.session.query(OrderModel)
        if user_id is not None:
            query = query.filter(OrderModel.user_id == user_id)
        rows = query.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).all()
        return [row.to_domain() for row in rows]


class SqlRepositories(Repositories):
    def __init__(self):
        self.users = SqlUserRepository()
        self.categories = SqlCategoryRepository()
        self.products = SqlProductRepository()
        self.orders = SqlOrderRepository()

    def run_atomic(self, func: Callable[[], T]) -> T:
        return run_unit_with_retry(func, failed=unit_failed)
