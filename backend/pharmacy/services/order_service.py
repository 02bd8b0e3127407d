# Overview: Service-layer operations for orders; checkout, stock decrement and status lifecycle.

"""
Inventory & order ledger.

Checkout is validate-then-commit inside one atomic unit: every product is
resolved and every cumulative quantity checked against stock before the
first decrement. The decrement itself is still a compare-and-swap, so a
concurrent checkout that slipped in between can only make this one fail,
never oversell.

Cancelling an order does not restock.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..domain import NewOrderItem, Order, OrderLine, OrderStatus, ShippingInfo
from ..errors import ErrorKind, Result
from ..money import to_money
from ..repositories import Repositories

TransitionPolicy = Callable[[OrderStatus, OrderStatus], bool]


def is_valid_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Open graph: any status may move to any other status."""
    return True


_STRICT_GRAPH = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


def strict_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """PENDING -> PROCESSING -> SHIPPED -> DELIVERED; cancel before shipping."""
    return new in _STRICT_GRAPH[current]


TRANSITION_POLICIES: dict[str, TransitionPolicy] = {
    "open": is_valid_transition,
    "strict": strict_transition,
}


def _validate_lines(lines: list[OrderLine]) -> Result | None:
    if not lines:
        return Result.failure(ErrorKind.VALIDATION_FAILED, "Order must contain at least one item")
    for line in lines:
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return Result.failure(
                ErrorKind.VALIDATION_FAILED,
                "Quantity must be a positive integer",
                productId=line.product_id,
            )
    return None


class OrderService:
    def __init__(
        self,
        repos: Repositories,
        *,
        transition_policy: TransitionPolicy = is_valid_transition,
        logger: logging.Logger | None = None,
    ):
        self._repos = repos
        self._can_transition = transition_policy
        self._log = logger or logging.getLogger(__name__)

    def place_order(self, user_id: int, lines: Iterable[OrderLine], shipping: ShippingInfo | None = None) -> Result[Order]:
        lines = list(lines)
        invalid = _validate_lines(lines)
        if invalid:
            return invalid

        result = self._repos.run_atomic(lambda: self._place(user_id, lines, shipping or ShippingInfo()))
        if result.ok:
            self._log.info(
                "Order id=%s placed by user_id=%s total=%s",
                result.value.id, user_id, result.value.total_amount,
            )
        else:
            self._log.warning(
                "Order rejected for user_id=%s: %s %s",
                user_id, result.error.kind.value, result.error.message,
            )
        return result

    def _place(self, user_id: int, lines: list[OrderLine], shipping: ShippingInfo) -> Result[Order]:
        products = {}
        for line in lines:
            if line.product_id in products:
                continue
            product = self._repos.products.get(line.product_id, for_update=True)
            if product is None:
                return Result.failure(
                    ErrorKind.PRODUCT_NOT_FOUND,
                    f"Product {line.product_id} not found",
                    productId=line.product_id,
                )
            products[line.product_id] = product

        requested: dict[int, int] = {}
        for line in lines:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        insufficient = []
        for product_id, qty in requested.items():
            product = products[product_id]
            if product.stock_quantity < qty:
                insufficient.append({
                    "productId": product_id,
                    "productName": product.name,
                    "requested": qty,
                    "available": product.stock_quantity,
                })
        if insufficient:
            first = insufficient[0]
            return Result.failure(
                ErrorKind.INSUFFICIENT_STOCK,
                f"Insufficient stock for {first['productName']}",
                items=insufficient,
            )

        items = []
        total = to_money(0)
        for line in lines:
            product = products[line.product_id]
            if not self._repos.products.decrement_stock(product.id, line.quantity):
                # Lost a race with a concurrent checkout
                return Result.failure(
                    ErrorKind.INSUFFICIENT_STOCK,
                    f"Insufficient stock for {product.name}",
                    items=[{"productId": product.id, "productName": product.name, "requested": line.quantity}],
                )
            unit = product.unit_price
            line_total = to_money(unit * line.quantity)
            total += line_total
            items.append(NewOrderItem(
                product_id=product.id,
                product_name=product.name,
                quantity=line.quantity,
                price=unit,
                total=line_total,
            ))

        order = self._repos.orders.add(
            user_id=user_id,
            status=OrderStatus.PENDING,
            total_amount=total,
            shipping=shipping,
            items=items,
        )
        return Result.success(order)

    def update_order_status(self, order_id: int, new_status) -> Result[Order]:
        status = OrderStatus.parse(new_status)
        if status is None:
            return Result.failure(
                ErrorKind.INVALID_STATUS,
                "Invalid status",
                allowed=[s.value for s in OrderStatus],
            )

        def _op():
            order = self._repos.orders.get(order_id)
            if order is None:
                return Result.failure(ErrorKind.ORDER_NOT_FOUND, "Order not found", orderId=order_id)
            if not self._can_transition(order.status, status):
                return Result.failure(
                    ErrorKind.INVALID_STATUS,
                    f"Cannot change status from {order.status.value} to {status.value}",
                )
            return Result.success(self._repos.orders.update_status(order_id, status))

        result = self._repos.run_atomic(_op)
        if result.ok:
            self._log.info("Order id=%s status -> %s", order_id, status.value)
        return result

    def get_order(self, order_id: int) -> Result[Order]:
        order = self._repos.orders.get(order_id)
        if order is None:
            return Result.failure(ErrorKind.ORDER_NOT_FOUND, "Order not found", orderId=order_id)
        return Result.success(order)

    def get_order_for(self, order_id: int, *, user_id: int, is_admin: bool) -> Result[Order]:
        """Owner (or admin) read of one order."""
        result = self.get_order(order_id)
        if result.ok and not is_admin and result.value.user_id != user_id:
            return Result.failure(ErrorKind.NOT_ORDER_OWNER, "You can only view your own orders")
        return result

    def list_orders_for_user(self, user_id: int) -> list[Order]:
        return self._repos.orders.list(user_id=user_id)

    def list_orders(self) -> list[Order]:
        return self._repos.orders.list()

    def admin_view(self, order: Order) -> dict:
        data = order.to_dict()
        user = self._repos.users.get(order.user_id)
        data["userEmail"] = user.email if user else None
        data["userName"] = user.full_name if user else None
        return data
