"""Admin dashboard passthrough to the backend"""

import logging
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from pydantic import BaseModel

from ..services.backend_client import BarbershopBackend, get_backend_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class ReservationStatus(str, Enum):
    PENDING = "pendiente"
    CONFIRMED = "confirmada"
    CANCELLED = "cancelada"


class StatusUpdate(BaseModel):
    status: ReservationStatus


class DeliveryStatus(str, Enum):
    """Hand-over state of products-only invoices"""

    PENDING = "pendiente"
    DELIVERED = "entregado"


class DeliveryStatusUpdate(BaseModel):
    deliveryStatus: DeliveryStatus


@router.get("/reservations")
async def list_reservations(request: Request, backend: BarbershopBackend = Depends(get_backend_client)):
    """Filters (date, status, barberId, page...) are forwarded untouched"""
    return await backend.list_admin_reservations(dict(request.query_params))


@router.put("/reservations/{reservation_id}/status")
async def update_reservation_status(
    reservation_id: int,
    data: StatusUpdate,
    backend: BarbershopBackend = Depends(get_backend_client),
):
    result = await backend.update_reservation_status(reservation_id, data.status.value)
    logger.info(f"Reservation {reservation_id} set to {data.status.value}")
    return result


@router.put("/reservations/{reservation_id}/delivery-status")
async def update_delivery_status(
    reservation_id: int,
    data: DeliveryStatusUpdate,
    backend: BarbershopBackend = Depends(get_backend_client),
):
    result = await backend.update_delivery_status(reservation_id, data.deliveryStatus.value)
    logger.info(f"Reservation {reservation_id} delivery set to {data.deliveryStatus.value}")
    return result


@router.delete("/reservations/{reservation_id}")
async def delete_reservation(reservation_id: int, backend: BarbershopBackend = Depends(get_backend_client)):
    result = await backend.delete_reservation(reservation_id)
    logger.info(f"Reservation {reservation_id} deleted")
    return result


@router.get("/hours")
async def get_hours(backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.get_hours()


@router.put("/hours")
async def update_hours(hours: dict = Body(...), backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.update_hours(hours)


@router.get("/notifications")
async def get_notification_settings(backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.get_notification_settings()


@router.put("/notifications")
async def update_notification_settings(
    settings: dict = Body(...), backend: BarbershopBackend = Depends(get_backend_client)
):
    return await backend.update_notification_settings(settings)


@router.get("/statistics/dashboard")
async def dashboard_stats(backend: BarbershopBackend = Depends(get_backend_client)):
    return await backend.get_dashboard_stats()


@router.get("/statistics/monthly-sales")
async def monthly_sales(
    year: Optional[int] = None,
    month: Optional[int] = None,
    backend: BarbershopBackend = Depends(get_backend_client),
):
    return await backend.get_monthly_sales({"year": year, "month": month})
