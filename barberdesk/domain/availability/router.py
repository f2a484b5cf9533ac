"""Availability router - open slots and bookable dates"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...services.backend_client import BarbershopBackend, get_backend_client
from .schemas import AvailableSlotsResponse, BookableDate
from .service import TIME_SLOTS, AvailabilityService, format_date, get_future_dates

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(
    backend: BarbershopBackend = Depends(get_backend_client),
) -> AvailabilityService:
    return AvailabilityService(backend)


@router.get("/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    barberId: Optional[str] = Query(None, description="Omit for any barber"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Slots still bookable for a date"""
    slots = await service.get_available_slots(date, barberId)
    return AvailableSlotsResponse(date=date, barberId=barberId, slots=slots, allSlots=TIME_SLOTS)


@router.get("/dates", response_model=list[BookableDate])
async def get_bookable_dates(days: int = Query(7, ge=1, le=60)):
    return [BookableDate(date=d, label=format_date(d)) for d in get_future_dates(days)]
