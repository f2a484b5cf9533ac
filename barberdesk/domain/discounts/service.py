"""Discount engine - amount computation, proportional allocation, backend validation"""

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Any, Optional, Union

from fastapi import HTTPException

from ...services.backend_client import BackendError, BarbershopBackend
from ...shared.money import CENT, ZERO, money, to_decimal
from ...shared.validators import normalize_code
from .schemas import AppliedDiscount, DiscountCode, DiscountType

logger = logging.getLogger(__name__)

DiscountLike = Union[DiscountCode, dict]


def _field(discount: DiscountLike, name: str) -> Any:
    if isinstance(discount, dict):
        return discount.get(name)
    return getattr(discount, name, None)


def compute_discount_amount(discount: DiscountLike, subtotal: Any) -> Decimal:
    """
    Amount a code takes off a subtotal.

    percentage: subtotal * value / 100, capped at max_discount when set
    fixed: value, capped at the subtotal
    The result always lies within [0, subtotal].
    """
    subtotal = money(subtotal)
    if subtotal <= ZERO:
        return ZERO

    discount_type = _field(discount, "discount_type")
    if isinstance(discount_type, DiscountType):
        discount_type = discount_type.value
    value = to_decimal(_field(discount, "discount_value"))

    if discount_type == DiscountType.PERCENTAGE.value:
        amount = subtotal * value / Decimal(100)
        max_discount = _field(discount, "max_discount")
        if max_discount:
            amount = min(amount, to_decimal(max_discount))
    elif discount_type == DiscountType.FIXED.value:
        amount = value
    else:
        logger.warning(f"Unknown discount type {discount_type!r}, ignoring discount")
        return ZERO

    return money(min(max(amount, ZERO), subtotal))


def discounted_total(subtotal: Any, discount_amount: Any) -> Decimal:
    return max(ZERO, money(subtotal) - money(discount_amount))


def allocate_discount(line_totals: list[Any], discount_amount: Any) -> list[Decimal]:
    """
    Split a discount across lines in proportion to each line's total.

    Exact shares are truncated to cents, then the leftover cents go one at a
    time to the lines with the largest truncated fraction (later lines first
    on ties). A line never takes more than its own total, and the shares
    always add up to the discount.
    """
    totals = [money(t) for t in line_totals]
    grand_total = sum(totals, ZERO)
    amount = min(money(discount_amount), grand_total)

    if amount <= ZERO or grand_total <= ZERO:
        return [ZERO for _ in totals]

    exact = [t * amount / grand_total for t in totals]
    shares = [e.quantize(CENT, rounding=ROUND_DOWN) for e in exact]
    order = sorted(range(len(totals)), key=lambda i: (exact[i] - shares[i], i), reverse=True)

    remainder = amount - sum(shares, ZERO)
    while remainder > ZERO:
        for i in order:
            if remainder <= ZERO:
                break
            if shares[i] + CENT <= totals[i]:
                shares[i] += CENT
                remainder -= CENT
    return shares


def recalculate(applied: AppliedDiscount, subtotal: Any) -> AppliedDiscount:
    """Re-derive the discount amount after the line set changed"""
    amount = compute_discount_amount(applied, subtotal)
    return applied.model_copy(update={"discountAmount": float(amount)})


class DiscountService:
    """Validates codes against the backend and prices them locally"""

    def __init__(self, backend: BarbershopBackend):
        self.backend = backend

    async def validate(self, code: Optional[str], subtotal: Any) -> AppliedDiscount:
        try:
            code = normalize_code(code)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        subtotal = money(subtotal)
        try:
            payload = await self.backend.validate_discount(code, float(subtotal))
        except BackendError as e:
            if e.status_code in (400, 404, 422):
                logger.info(f"Discount code {code} rejected: {e.message}")
                raise HTTPException(status_code=400, detail=e.message or "Código de descuento no válido") from e
            raise

        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Código de descuento no válido")

        discount = DiscountCode.model_validate(payload)

        # Prefer the backend's figure; fall back to local pricing when it is missing or zero
        amount = money(payload.get("discountAmount") or 0)
        if not amount:
            amount = compute_discount_amount(discount, subtotal)
        amount = min(max(amount, ZERO), subtotal)

        logger.info(f"Discount {code} applied: -{amount} on {subtotal}")
        return AppliedDiscount(**discount.model_dump(), discountAmount=float(amount))

    async def load(self, discount_id: int) -> DiscountCode:
        return DiscountCode.model_validate(await self.backend.get_discount(discount_id))
