"""Invoice service - counter invoices stored as reservations with line items"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException

from ...services.backend_client import BackendError, BarbershopBackend
from ...shared.money import line_total, money, subtotal
from ..cart.schemas import LineType
from ..discounts.schemas import AppliedDiscount
from ..discounts.service import DiscountService, allocate_discount, discounted_total, recalculate
from .schemas import InvoiceCreate, InvoiceItem, InvoiceResponse, InvoiceUpdate

logger = logging.getLogger(__name__)

CONFIRMED = "confirmada"
PRODUCTS_ONLY_LABEL = "Factura - Solo Productos"


def pick_service_reference(
    items: list[InvoiceItem], catalog_services: list[dict]
) -> tuple[Optional[str], str]:
    """
    The backend files every invoice under a reservation, which needs a
    serviceId. Use the first service line; otherwise any catalog service with
    a products-only label, and no service at all when the catalog is empty.
    """
    for item in items:
        if item.type == LineType.SERVICE and item.itemId is not None:
            return str(item.itemId), item.name
    if catalog_services:
        return str(catalog_services[0]["id"]), PRODUCTS_ONLY_LABEL
    return None, PRODUCTS_ONLY_LABEL


def allocate_items(items: list[InvoiceItem], discount_amount) -> list[InvoiceItem]:
    """Attach each line's share of the discount"""
    shares = allocate_discount([line_total(i.price, i.quantity) for i in items], discount_amount)
    return [item.model_copy(update={"discountAmount": float(share)}) for item, share in zip(items, shares)]


def check_items(items: list[InvoiceItem]) -> list[InvoiceItem]:
    if not items:
        raise HTTPException(status_code=400, detail="Debe haber al menos un item")

    cleaned = []
    for item in items:
        name = item.name.strip()
        if not name:
            raise HTTPException(status_code=400, detail="Todos los items necesitan un nombre")
        if item.type != LineType.CUSTOM and item.itemId is None:
            raise HTTPException(status_code=400, detail=f"El item '{name}' no tiene referencia de catálogo")
        cleaned.append(item.model_copy(update={"name": name}))
    return cleaned


def build_response(reservation_id: int, items: list[InvoiceItem], applied: Optional[AppliedDiscount]) -> InvoiceResponse:
    amount: Decimal = money(applied.discountAmount) if applied else money(0)
    total = subtotal(items)
    return InvoiceResponse(
        reservationId=reservation_id,
        items=allocate_items(items, amount),
        subtotal=float(total),
        discount=applied,
        discountAmount=float(amount),
        total=float(discounted_total(total, amount)),
    )


class InvoiceService:
    """Service layer for admin invoices"""

    def __init__(self, backend: BarbershopBackend):
        self.backend = backend
        self.discounts = DiscountService(backend)

    async def create_invoice(self, data: InvoiceCreate, now: Optional[datetime] = None) -> InvoiceResponse:
        customer_name = data.customerName.strip()
        if not customer_name:
            raise HTTPException(status_code=400, detail="El nombre del cliente es requerido")
        items = check_items(data.items)

        # Validate the code before anything is written upstream
        applied = None
        if data.discountCode:
            applied = await self.discounts.validate(data.discountCode, subtotal(items))

        catalog_services = []
        if not any(i.type == LineType.SERVICE for i in items):
            catalog_services = await self.backend.list_services(for_invoice=True)
        service_id, service_label = pick_service_reference(items, catalog_services)

        now = now or datetime.now()
        payload = {
            "serviceId": service_id,
            "serviceLabel": service_label,
            "date": now.strftime("%Y-%m-%d"),
            "time": now.strftime("%H:%M"),
            "customerName": customer_name,
        }
        if data.customerPhone:
            payload["customerPhone"] = data.customerPhone

        reservation = await self.backend.create_reservation(payload)
        reservation_id = (reservation or {}).get("reservationId") or (reservation or {}).get("id")
        if reservation_id is None:
            logger.error(f"Backend returned no reservation id for invoice: {reservation}")
            raise HTTPException(status_code=502, detail="El servidor no devolvió el número de factura")

        response = build_response(int(reservation_id), items, applied)
        try:
            await self._persist_items(response)
            await self.backend.update_reservation_status(response.reservationId, CONFIRMED)
        except BackendError as e:
            logger.error(f"Invoice {response.reservationId} could not be completed: {e.message}")
            await self._discard_reservation(response.reservationId)
            raise

        logger.info(
            f"Invoice {response.reservationId} created: {len(items)} items, "
            f"subtotal {response.subtotal}, discount {response.discountAmount}"
        )
        return response

    async def load_invoice(self, reservation_id: int) -> InvoiceResponse:
        rows = await self.backend.get_reservation_items(reservation_id)
        items = [
            InvoiceItem(
                type=row.get("item_type") or LineType.CUSTOM.value,
                itemId=row.get("item_id"),
                name=row.get("item_name") or "",
                price=float(money(row.get("unit_price"))),
                quantity=int(row.get("quantity") or 1),
            )
            for row in rows
        ]

        applied = await self._restore_discount(rows)
        if applied:
            applied = recalculate(applied, subtotal(items))
        return build_response(reservation_id, items, applied)

    async def save_invoice(self, reservation_id: int, data: InvoiceUpdate) -> InvoiceResponse:
        items = check_items(data.items)
        total = subtotal(items)

        applied = None
        if data.discountCode:
            applied = await self.discounts.validate(data.discountCode, total)
        elif data.discountCodeId is not None:
            discount = await self.discounts.load(data.discountCodeId)
            applied = recalculate(AppliedDiscount(**discount.model_dump()), total)

        response = build_response(reservation_id, items, applied)
        await self._persist_items(response)
        logger.info(f"Invoice {reservation_id} saved: {len(items)} items, total {response.total}")
        return response

    async def _persist_items(self, invoice: InvoiceResponse) -> None:
        await self.backend.update_reservation_items(
            invoice.reservationId,
            [
                {
                    "type": item.type.value,
                    "itemId": item.itemId,
                    "name": item.name,
                    "price": item.price,
                    "quantity": item.quantity,
                    "discountAmount": item.discountAmount,
                }
                for item in invoice.items
            ],
            invoice.discount.id if invoice.discount else None,
        )

    async def _discard_reservation(self, reservation_id: int) -> None:
        """Remove the pending reservation left behind by a half-written invoice"""
        try:
            await self.backend.delete_reservation(reservation_id)
        except BackendError as e:
            logger.error(f"Pending reservation {reservation_id} left upstream: {e.message}")

    async def _restore_discount(self, rows: list[dict]) -> Optional[AppliedDiscount]:
        """Rebuild the applied code from the first stored line that references one"""
        row = next((r for r in rows if r.get("discount_code_id")), None)
        if row is None:
            return None

        if row.get("discount_type") and row.get("discount_value") is not None:
            return AppliedDiscount(
                id=row["discount_code_id"],
                code=row.get("discount_code") or "",
                description=row.get("discount_description") or "",
                discount_type=row["discount_type"],
                discount_value=float(row["discount_value"]),
                max_discount=float(row["max_discount"]) if row.get("max_discount") else None,
            )

        try:
            discount = await self.discounts.load(row["discount_code_id"])
        except BackendError as e:
            logger.warning(f"Could not load discount {row['discount_code_id']}: {e.message}")
            return None
        return AppliedDiscount(**discount.model_dump())
