# Overview: Read-only analytics over order and product snapshots.

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..domain import Order, OrderStatus, Product
from ..money import as_number, to_money
from ..repositories import Repositories
from ..time_utils import month_key


def dashboard_stats(orders: Iterable[Order], total_users: int) -> dict:
    orders = list(orders)
    by_status = {status: 0 for status in OrderStatus}
    revenue = Decimal(0)
    for order in orders:
        by_status[order.status] += 1
        revenue += order.total_amount

    return {
        "totalUsers": total_users,
        "totalOrders": len(orders),
        "totalRevenue": as_number(to_money(revenue)),
        "pendingOrders": by_status[OrderStatus.PENDING],
        "processingOrders": by_status[OrderStatus.PROCESSING],
        "shippedOrders": by_status[OrderStatus.SHIPPED],
        "deliveredOrders": by_status[OrderStatus.DELIVERED],
        "cancelledOrders": by_status[OrderStatus.CANCELLED],
    }


def monthly_revenue(orders: Iterable[Order], months: int = 12) -> list[dict]:
    """Revenue per UTC creation month; the most recent `months`, oldest first."""
    buckets: dict[str, Decimal] = {}
    for order in orders:
        if order.created_at is None:
            continue
        key = month_key(order.created_at)
        buckets[key] = buckets.get(key, Decimal(0)) + order.total_amount

    recent = sorted(buckets)[-months:] if months > 0 else []
    return [{"month": key, "revenue": as_number(to_money(buckets[key]))} for key in recent]


def top_products(orders: Iterable[Order], limit: int = 10) -> list[dict]:
    totals: dict[int, dict] = {}
    for order in orders:
        for item in order.items:
            entry = totals.setdefault(item.product_id, {
                "productId": item.product_id,
                "productName": item.product_name,
                "totalSales": 0,
                "totalRevenue": Decimal(0),
            })
            entry["totalSales"] += item.quantity
            entry["totalRevenue"] += item.total

    ranked = sorted(totals.values(), key=lambda e: (-e["totalRevenue"], e["productId"]))
    return [
        {**entry, "totalRevenue": as_number(to_money(entry["totalRevenue"]))}
        for entry in ranked[:max(limit, 0)]
    ]


def order_status_counts(orders: Iterable[Order]) -> list[dict]:
    counts: dict[OrderStatus, int] = {}
    for order in orders:
        counts[order.status] = counts.get(order.status, 0) + 1
    return [
        {"status": status.value, "count": counts[status]}
        for status in OrderStatus
        if status in counts
    ]


def low_stock_products(products: Iterable[Product], threshold: int = 50) -> list[dict]:
    return [
        {
            "id": p.id,
            "name": p.name,
            "stockQuantity": p.stock_quantity,
            "threshold": threshold,
        }
        for p in products
        if p.enabled and p.stock_quantity <= threshold
    ]


class ReportingService:
    """Binds the pure projections to a repository snapshot."""

    def __init__(self, repos: Repositories, *, low_stock_threshold: int = 50, top_limit: int = 10):
        self._repos = repos
        self.low_stock_threshold = low_stock_threshold
        self.top_limit = top_limit

    def dashboard_stats(self) -> dict:
        return dashboard_stats(self._repos.orders.list(), self._repos.users.count())

    def monthly_revenue(self, months: int = 12) -> list[dict]:
        return monthly_revenue(self._repos.orders.list(), months)

    def top_products(self, limit: int | None = None) -> list[dict]:
        return top_products(self._repos.orders.list(), self.top_limit if limit is None else limit)

    def order_status_counts(self) -> list[dict]:
        return order_status_counts(self._repos.orders.list())

    def low_stock_products(self, threshold: int | None = None) -> list[dict]:
        threshold = self.low_stock_threshold if threshold is None else threshold
        return low_stock_products(self._repos.products.list(), threshold)
