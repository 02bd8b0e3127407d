# Overview: Decimal money helpers shared by pricing, storage and serialization.

"""
Money is always a Decimal quantized to cents (half-up).

The discounted unit price is rounded BEFORE it is multiplied by quantity,
so a line total is exactly price * quantity and an order total is exactly
the sum of its line totals.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
HUNDRED = Decimal(100)

# Maximum price: 9,999,999.99
MAX_PRICE = Decimal("9999999.99")


def to_money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def discounted_unit_price(price: Decimal, discount: Decimal | None) -> Decimal:
    """price * (1 - discount/100); a missing discount counts as 0."""
    if not discount:
        return to_money(price)
    return to_money(price * (HUNDRED - discount) / HUNDRED)


def to_cents(amount: Decimal) -> int:
    return int((to_money(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return to_money(Decimal(cents) / 100)


def percent_to_bps(percent: Decimal | None) -> int | None:
    if percent is None:
        return None
    return int((percent * 100).to_integral_value(rounding=ROUND_HALF_UP))


def bps_to_percent(bps: int | None) -> Decimal | None:
    if bps is None:
        return None
    return Decimal(bps) / 100


def as_number(amount: Decimal | None):
    """JSON-friendly number for API payloads."""
    if amount is None:
        return None
    return float(amount)
