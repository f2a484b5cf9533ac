"""Availability service - slot grid, bookable dates and the slot filter"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from fastapi import HTTPException

from ...config import (
    BOOKING_CUTOFF,
    BOOKING_DAYS_AHEAD,
    SLOT_END_HOUR,
    SLOT_INTERVAL_MINUTES,
    SLOT_START_HOUR,
)
from ...services.backend_client import BarbershopBackend
from ...services.catalog_service import CatalogService
from ...shared.validators import normalize_time, validate_iso_date

logger = logging.getLogger(__name__)

CANCELLED = "cancelada"

WEEKDAYS_ES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]
MONTHS_ES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]


def generate_time_slots(
    start_hour: int = SLOT_START_HOUR,
    end_hour: int = SLOT_END_HOUR,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> list[str]:
    """
    Build the bookable "HH:MM" grid. The end hour only contributes its
    ":00" slot, so 9..19 every 30 minutes gives 09:00 .. 18:30, 19:00.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    slots = []
    minute = start_hour * 60
    last = end_hour * 60
    while minute <= last:
        slots.append(f"{minute // 60:02d}:{minute % 60:02d}")
        minute += interval_minutes
    return slots


TIME_SLOTS = generate_time_slots()


def _parse_cutoff(value: str) -> tuple[int, int]:
    hours, _, minutes = value.partition(":")
    return int(hours), int(minutes or 0)


def get_future_dates(
    days: int = BOOKING_DAYS_AHEAD, now: Optional[datetime] = None, cutoff: str = BOOKING_CUTOFF
) -> list[str]:
    """Next `days` ISO dates; today is skipped once the cutoff time has passed"""
    now = now or datetime.now()
    start = now.date()
    if (now.hour, now.minute) >= _parse_cutoff(cutoff):
        start += timedelta(days=1)
    return [(start + timedelta(days=i)).isoformat() for i in range(days)]


def format_date(date_str: Optional[str]) -> str:
    """'2026-10-17' -> 'sábado, 17 de octubre de 2026'"""
    if not date_str:
        return ""
    try:
        d = date.fromisoformat(str(date_str))
    except ValueError:
        return str(date_str)
    return f"{WEEKDAYS_ES[d.weekday()]}, {d.day} de {MONTHS_ES[d.month - 1]} de {d.year}"


def _same_id(a, b) -> bool:
    return a is not None and b is not None and str(a) == str(b)


def resolve_available_slots(
    slots: Iterable[str],
    reservations: Iterable[dict],
    barber_id: Optional[str] = None,
    barber_count: int = 0,
) -> list[str]:
    """
    Filter the slot grid against existing reservations.

    With a barber chosen, a slot is taken when that barber already has an
    active reservation at that time, or when a reservation without a barber
    sits there (it blocks everyone). With "any barber", a slot stays open
    while active reservations at that time are fewer than the active barbers.
    """
    booked: dict[str, list[dict]] = {}
    for reservation in reservations:
        if reservation.get("status") == CANCELLED:
            continue
        slot = normalize_time(reservation.get("time"))
        if slot:
            booked.setdefault(slot, []).append(reservation)

    capacity = max(barber_count, 1)
    available = []
    for slot in slots:
        at_slot = booked.get(slot, [])
        if barber_id is not None:
            taken = any(
                r.get("barber_id") is None or _same_id(r.get("barber_id"), barber_id) for r in at_slot
            )
        else:
            taken = len(at_slot) >= capacity
        if not taken and slot not in available:
            available.append(slot)
    return available


class AvailabilityService:
    """Fetches barbers and reservations and resolves open slots"""

    def __init__(self, backend: BarbershopBackend):
        self.backend = backend
        self.catalog = CatalogService(backend)

    async def get_available_slots(self, date_str: Optional[str], barber_id: Optional[str] = None) -> list[str]:
        if not date_str:
            return []
        try:
            validate_iso_date(date_str)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e

        barbers = await self.catalog.get_active_barbers()
        reservations = await self.backend.list_reservations(date_str, barber_id)
        available = resolve_available_slots(TIME_SLOTS, reservations, barber_id, len(barbers))

        logger.info(
            f"Availability for {date_str} (barber={barber_id or 'any'}): "
            f"{len(available)}/{len(TIME_SLOTS)} slots open, {len(reservations)} reservations"
        )
        return available
