"""Money helpers. Amounts are Decimal internally and rounded half-up to cents."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(price: Any, quantity: Any) -> Decimal:
    return money(to_decimal(price) * int(quantity or 0))


def subtotal(lines: Iterable[Any]) -> Decimal:
    """Sum of price x quantity over objects exposing .price and .quantity"""
    return money(sum((line_total(line.price, line.quantity) for line in lines), ZERO))


def format_amount(value: Any) -> str:
    return f"${money(value):.2f}"
