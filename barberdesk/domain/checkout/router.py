"""Checkout router - cart checkout and appointment booking"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...config import BOOKING_LIMIT, BOOKING_WINDOW
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...services.backend_client import BarbershopBackend, get_backend_client
from .schemas import BookingRequest, BookingResponse, CheckoutRequest, CheckoutResponse
from .service import CheckoutService

router = APIRouter(tags=["Checkout"])

booking_rate_limit = create_rate_limiter(
    limit=BOOKING_LIMIT, window_seconds=BOOKING_WINDOW, key_prefix="booking"
)


def get_checkout_service(
    db: Session = Depends(get_db),
    backend: BarbershopBackend = Depends(get_backend_client),
) -> CheckoutService:
    return CheckoutService(db, backend)


@router.post("/cart/{cart_id}/checkout", response_model=CheckoutResponse)
async def checkout_cart(
    cart_id: str,
    data: CheckoutRequest,
    _: None = Depends(booking_rate_limit),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Create the order upstream, empty the cart and hand back the WhatsApp link"""
    return await service.checkout_cart(cart_id, data)


@router.post("/bookings", response_model=BookingResponse)
async def book_appointment(
    data: BookingRequest,
    _: None = Depends(booking_rate_limit),
    service: CheckoutService = Depends(get_checkout_service),
):
    """Reserve a slot; answers 409 with fresh slots when it was just taken"""
    return await service.book_appointment(data)
