"""Availability domain schemas"""

from typing import Optional

from pydantic import BaseModel


class AvailableSlotsResponse(BaseModel):
    """Open slots for a date (and optionally one barber)"""

    date: Optional[str] = None
    barberId: Optional[str] = None
    slots: list[str]
    allSlots: list[str]


class BookableDate(BaseModel):
    date: str
    label: str
