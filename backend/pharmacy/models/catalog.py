from __future__ import annotations

from ..domain import Category as CategoryRecord, Product as ProductRecord
from ..extensions import db
from ..money import from_cents, bps_to_percent
from ..time_utils import utcnow


class Category(db.Model):
    """
    Product categories.

    Soft-deleted through `enabled`; products keep pointing at a disabled
    category and simply render without a category name.
    """
    __tablename__ = "categories"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    enabled = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_domain(self) -> CategoryRecord:
        return CategoryRecord(
            id=self.id,
            name=self.name,
            description=self.description,
            enabled=self.enabled,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class Product(db.Model):
    """
    Catalog product.

    Money is stored in cents and the discount in basis points
    (12.5% -> 1250). stock_quantity is the only column order placement
    writes, always through a conditional UPDATE.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="price_non_negative"),
        db.CheckConstraint(
            "discount_bps IS NULL OR (discount_bps >= 0 AND discount_bps <= 10000)",
            name="discount_range",
        ),
        db.Index("ix_products_enabled_category", "enabled", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Authoritative storage in cents
    price_cents = db.Column(db.BigInteger, nullable=False)
    discount_bps = db.Column(db.Integer, nullable=True)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    brand = db.Column(db.String(255), nullable=True)

    # No cascade: a disabled category leaves this reference in place
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    enabled = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock_quantity}>"

    def to_domain(self) -> ProductRecord:
        return ProductRecord(
            id=self.id,
            name=self.name,
            description=self.description,
            price=from_cents(self.price_cents),
            discount=bps_to_percent(self.discount_bps),
            stock_quantity=self.stock_quantity,
            brand=self.brand,
            category_id=self.category_id,
            enabled=self.enabled,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
