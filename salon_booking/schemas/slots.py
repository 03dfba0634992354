# salon_booking/schemas/slots.py
"""
Pydantic schemas for the availability API.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel


class SlotRead(BaseModel):
    """A single offerable start time."""
    time: str  # "HH:MM"
    available: bool
    waitlist_count: Optional[int] = None

    model_config = {"from_attributes": True}


class AvailabilityResponse(BaseModel):
    """Slots for one service on one day."""
    date: date
    service_id: int
    duration_minutes: int
    slots: list[SlotRead]
    closed_reason: Optional[str] = None

    model_config = {"from_attributes": True}
