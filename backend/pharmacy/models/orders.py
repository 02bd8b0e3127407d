from __future__ import annotations

from ..domain import (
    Order as OrderRecord,
    OrderItem as OrderItemRecord,
    OrderStatus,
    ShippingInfo,
)
from ..extensions import db
from ..money import from_cents
from ..time_utils import utcnow


class Order(db.Model):
    """
    Committed order (the ledger).

    total_cents and the item rows are write-once; status is the only
    column updated after creation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=OrderStatus.PENDING.value)
    total_cents = db.Column(db.BigInteger, nullable=False)

    shipping_address = db.Column(db.String(255), nullable=True)
    shipping_city = db.Column(db.String(120), nullable=True)
    shipping_state = db.Column(db.String(120), nullable=True)
    shipping_zip_code = db.Column(db.String(32), nullable=True)
    shipping_country = db.Column(db.String(120), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy="selectin",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    def to_domain(self) -> OrderRecord:
        return OrderRecord(
            id=self.id,
            user_id=self.user_id,
            status=OrderStatus(self.status),
            total_amount=from_cents(self.total_cents),
            shipping=ShippingInfo(
                address=self.shipping_address,
                city=self.shipping_city,
                state=self.shipping_state,
                zip_code=self.shipping_zip_code,
                country=self.shipping_country,
            ),
            items=tuple(item.to_domain() for item in self.items),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class OrderItem(db.Model):
    """
    Order line with name and unit price snapshotted at purchase time.

    product_id is kept for reporting only; rendering never reads the
    live product row.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_cents = db.Column(db.BigInteger, nullable=False)
    total_cents = db.Column(db.BigInteger, nullable=False)

    def to_domain(self) -> OrderItemRecord:
        return OrderItemRecord(
            id=self.id,
            order_id=self.order_id,
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            price=from_cents(self.price_cents),
            total=from_cents(self.total_cents),
        )
