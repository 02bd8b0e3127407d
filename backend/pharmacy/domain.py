# Overview: Domain records shared by repositories, services and routes.

"""
Domain records for the storefront.

Records are frozen dataclasses. Repositories hand out values, never live
references into their storage, and every mutation produces a new record
(dataclasses.replace). That keeps order snapshots immune to later catalog
edits regardless of which backend is in use.

Serialization (to_dict) uses the camelCase field names of the public API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from .money import as_number, discounted_unit_price
from .time_utils import to_utc_z


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    @classmethod
    def parse(cls, value) -> "OrderStatus | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class User:
    id: int
    email: str
    password_hash: str
    full_name: str
    role: Role = Role.USER
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict:
        # Never expose password_hash
        return {
            "id": self.id,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role.value,
            "enabled": self.enabled,
            "createdAt": to_utc_z(self.created_at),
        }


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    description: str | None = None
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    stock_quantity: int
    description: str | None = None
    discount: Decimal | None = None
    brand: str | None = None
    category_id: int | None = None
    enabled: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def unit_price(self) -> Decimal:
        """Price after the active discount, rounded to cents."""
        return discounted_unit_price(self.price, self.discount)

    def to_dict(self, category_name: str | None = None) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": as_number(self.price),
            "discount": as_number(self.discount),
            "finalPrice": as_number(self.unit_price),
            "stockQuantity": self.stock_quantity,
            "brand": self.brand,
            "categoryId": self.category_id,
            "categoryName": category_name,
            "enabled": self.enabled,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


@dataclass(frozen=True)
class ShippingInfo:
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None

    def to_dict(self) -> dict:
        return {
            "shippingAddress": self.address,
            "shippingCity": self.city,
            "shippingState": self.state,
            "shippingZipCode": self.zip_code,
            "shippingCountry": self.country,
        }


@dataclass(frozen=True)
class OrderLine:
    """One requested (productId, quantity) pair of a checkout."""
    product_id: int
    quantity: int


@dataclass(frozen=True)
class OrderItem:
    id: int
    order_id: int
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "productId": self.product_id,
            "productName": self.product_name,
            "quantity": self.quantity,
            "price": as_number(self.price),
            "total": as_number(self.total),
        }


@dataclass(frozen=True)
class NewOrderItem:
    """Priced line computed by the ledger before the order id exists."""
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    total: Decimal


@dataclass(frozen=True)
class Order:
    id: int
    user_id: int
    status: OrderStatus
    total_amount: Decimal
    shipping: ShippingInfo = field(default_factory=ShippingInfo)
    items: tuple[OrderItem, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "status": self.status.value,
            "totalAmount": as_number(self.total_amount),
        }
        data.update(self.shipping.to_dict())
        data.update({
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "items": [item.to_dict() for item in self.items],
        })
        return data


@dataclass(frozen=True)
class Claims:
    """Decoded token claims; the only shape the rest of the app sees."""
    user_id: int
    email: str
    role: Role
    expires_at: datetime
    token_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "email": self.email,
            "role": self.role.value,
        }


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> dict:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}
