"""Checkout service - cart checkout and direct appointment booking"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...services.backend_client import BackendError, BarbershopBackend
from ...services.catalog_service import CatalogService
from ...services.whatsapp import build_booking_message, build_order_message, whatsapp_link
from ..availability.service import AvailabilityService
from ..cart.schemas import LineType
from ..cart.service import CartService, declared_stock
from ..discounts.service import DiscountService, discounted_total
from .schemas import BookingRequest, BookingResponse, CheckoutRequest, CheckoutResponse

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = (
    "El horario seleccionado ya fue reservado por otro cliente. "
    "Por favor, selecciona otro horario disponible."
)
STOCK_HINT = "Por favor, actualiza la cantidad en tu carrito o elimina los productos sin stock."


def is_slot_taken(message: Optional[str]) -> bool:
    """The backend reports double bookings only through its message text"""
    text = (message or "").lower()
    return "ocupado" in text or "ya está" in text


class CheckoutService:
    """Turns carts and appointment picks into backend reservations"""

    def __init__(self, db: Session, backend: BarbershopBackend):
        self.backend = backend
        self.carts = CartService(db)
        self.catalog = CatalogService(backend)
        self.discounts = DiscountService(backend)

    async def checkout_cart(self, cart_id: str, data: CheckoutRequest) -> CheckoutResponse:
        cart = self.carts.get_cart(cart_id)
        if not cart.items:
            raise HTTPException(status_code=400, detail="El carrito está vacío")

        await self._check_stock(cart.items)

        subtotal = self.carts.subtotal(cart)
        applied = None
        if data.discountCode:
            applied = await self.discounts.validate(data.discountCode, subtotal)
        discount_amount = applied.discountAmount if applied else 0
        total = discounted_total(subtotal, discount_amount)

        logger.info(
            f"Checking out cart {cart_id}: {len(cart.items)} lines, subtotal {subtotal}, "
            f"discount {discount_amount}"
        )

        try:
            result = await self.backend.create_reservations_from_cart(
                {
                    "cartItems": [self.carts.to_line(item).model_dump(mode="json") for item in cart.items],
                    "customerName": data.customerName,
                    "customerPhone": data.customerPhone,
                    "discountCodeId": applied.id if applied else None,
                    "discountAmount": float(discount_amount),
                    "subtotal": float(subtotal),
                }
            )
        except BackendError as e:
            if "stock" in e.message.lower():
                raise HTTPException(status_code=409, detail=f"{e.message}\n\n{STOCK_HINT}") from e
            raise

        warnings = []
        if isinstance(result, dict) and result.get("errors"):
            warnings.append(
                f"Se crearon {result.get('success') or 1} reserva(s) correctamente, "
                f"pero {result.get('failed') or 0} fallaron."
            )
            logger.warning(f"Cart {cart_id} checkout partially failed: {result.get('errors')}")

        message = build_order_message(
            data.customerName,
            data.customerPhone,
            cart.items,
            subtotal,
            total,
            discount_code=applied.code if applied else None,
            discount_amount=discount_amount,
        )
        self.carts.clear_cart(cart_id)

        return CheckoutResponse(
            whatsappUrl=whatsapp_link(message),
            message=message,
            subtotal=float(subtotal),
            discount=applied,
            discountAmount=float(discount_amount),
            total=float(total),
            warnings=warnings,
            reservation=result,
        )

    async def _check_stock(self, items) -> None:
        """Re-read stock for every product line; unreadable products are left to the backend"""
        for item in items:
            if item.item_type != LineType.PRODUCT.value:
                continue
            try:
                product = await self.backend.get_product(item.catalog_id)
            except BackendError as e:
                logger.warning(f"Could not verify stock for product {item.catalog_id}: {e.message}")
                continue

            stock = declared_stock(product.get("stock")) if isinstance(product, dict) else None
            if stock is not None and stock < item.quantity:
                raise HTTPException(
                    status_code=409,
                    detail=(
                        f'Stock insuficiente para "{item.name}".\n\n'
                        f"Stock disponible: {stock}\n"
                        f"Solicitado: {item.quantity}\n\n"
                        "Por favor, actualiza la cantidad en el carrito."
                    ),
                )

    async def book_appointment(self, data: BookingRequest) -> BookingResponse:
        if data.serviceId is not None:
            service = await self.catalog.get_service(data.serviceId)
            service_id, label = str(service["id"]), service.get("name")
        else:
            # Offers are booked by label only
            offer = await self.catalog.get_offer(data.offerId)
            service_id, label = None, offer.get("name")

        barber = await self.catalog.get_barber(data.barberId)

        payload = {
            "serviceId": service_id,
            "serviceLabel": label,
            "date": data.date,
            "time": data.time,
            "customerName": data.customerName,
            "customerPhone": data.customerPhone,
        }
        if barber:
            payload["barberId"] = str(barber["id"])

        try:
            reservation = await self.backend.create_reservation(payload)
        except BackendError as e:
            if not is_slot_taken(e.message):
                raise
            logger.info(f"Slot {data.date} {data.time} taken (barber={data.barberId or 'any'})")
            raise HTTPException(
                status_code=409,
                detail={"message": SLOT_TAKEN_MESSAGE, "availableSlots": await self._refreshed_slots(data)},
            ) from e

        message = build_booking_message(
            label,
            barber.get("name") if barber else None,
            data.date,
            data.time,
            data.customerName,
            data.customerPhone,
        )
        return BookingResponse(reservation=reservation, whatsappUrl=whatsapp_link(message), message=message)

    async def _refreshed_slots(self, data: BookingRequest) -> list[str]:
        try:
            return await AvailabilityService(self.backend).get_available_slots(data.date, data.barberId)
        except BackendError as e:
            logger.warning(f"Could not refresh slots after conflict: {e.message}")
            return []
