# salon_booking/services/slots/config.py
"""
Booking configuration for slots calculation.
"""

from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slot engine.

    Attributes:
        slot_step_minutes: Grid step between candidate start times (15/30/60)
        afternoon_starts_at: "HH:MM" boundary between morning and afternoon
            for waitlist time preferences
    """
    slot_step_minutes: int = 30  # 15 / 30 / 60
    afternoon_starts_at: str = "12:00"

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_step_minutes not in (15, 30, 60):
            raise ValueError(f"slot_step_minutes must be 15, 30, or 60, got {self.slot_step_minutes}")

    def half_of_day(self, time_str: str) -> str:
        """Return "morning" or "afternoon" for an "HH:MM" start time."""
        if time_str_to_minutes(time_str) < time_str_to_minutes(self.afternoon_starts_at):
            return "morning"
        return "afternoon"


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration (singleton)."""
    return BookingConfig()


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.strip().split(":")[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time_str(total_minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"
