# salon_booking/services/slots/__init__.py
"""
Slots calculation module.

Pure pieces only: grid config, business hours, candidate starts and the
overlap test. The per-day view that reads storage lives in
`slots.availability` and is imported from there.
"""

from .config import BookingConfig, get_booking_config
from .schedule import BookingSettings, BusinessHours, BusinessHoursDay
from .generator import generate_slot_starts
from .conflicts import find_conflicts, has_conflict

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "BookingSettings",
    "BusinessHours",
    "BusinessHoursDay",
    "generate_slot_starts",
    "find_conflicts",
    "has_conflict",
]
