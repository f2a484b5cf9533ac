"""Discount router - public code validation and admin passthrough"""

import logging

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...config import DISCOUNT_VALIDATE_LIMIT, DISCOUNT_VALIDATE_WINDOW
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...services.backend_client import BarbershopBackend, get_backend_client
from ...shared.money import money
from ..cart.service import CartService
from .schemas import ValidateDiscountRequest, ValidateDiscountResponse
from .service import DiscountService, discounted_total

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/discounts", tags=["Discounts"])

discount_rate_limit = create_rate_limiter(
    limit=DISCOUNT_VALIDATE_LIMIT,
    window_seconds=DISCOUNT_VALIDATE_WINDOW,
    key_prefix="discount_validate",
)


def get_discount_service(backend: BarbershopBackend = Depends(get_backend_client)) -> DiscountService:
    return DiscountService(backend)


@router.post("/validate", response_model=ValidateDiscountResponse)
async def validate_discount(
    data: ValidateDiscountRequest,
    _: None = Depends(discount_rate_limit),
    service: DiscountService = Depends(get_discount_service),
    db: Session = Depends(get_db),
):
    """Validate a code against a stored cart's subtotal, or an explicit one"""
    if data.cartId is not None:
        cart_service = CartService(db)
        subtotal = cart_service.subtotal(cart_service.get_cart(data.cartId))
    else:
        subtotal = money(data.subtotal)

    applied = await service.validate(data.code, subtotal)
    return ValidateDiscountResponse(
        discount=applied,
        subtotal=float(subtotal),
        discountAmount=applied.discountAmount,
        total=float(discounted_total(subtotal, applied.discountAmount)),
    )


# ============================================================================
# ADMIN PASSTHROUGH (auth enforced by the backend)
# ============================================================================


@router.get("")
async def list_discounts(backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.list_discounts()


@router.get("/{discount_id}")
async def get_discount(discount_id: int, backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.get_discount(discount_id)


@router.post("")
async def create_discount(
    data: dict = Body(...),
    backend: BarbershopBackend = Depends(get_backend_client),
):
    if data.get("code"):
        data["code"] = str(data["code"]).strip().upper()
    return await backend.create_resource("discounts", data)


@router.put("/{discount_id}")
async def update_discount(
    discount_id: int,
    data: dict = Body(...),
    backend: BarbershopBackend = Depends(get_backend_client),
):
    if data.get("code"):
        data["code"] = str(data["code"]).strip().upper()
    return await backend.update_resource("discounts", discount_id, data)


@router.delete("/{discount_id}")
async def delete_discount(discount_id: int, backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.delete_resource("discounts", discount_id)
