# salon_booking/services/slots/schedule.py
"""
Business hours and booking settings.

Both are read-only configuration supplied by the catalog. Business hours are
stored per weekday in one of two formats:

  Format A (legacy): {"monday": {"open": "09:00", "close": "17:00", "is_open": true}}
  Format B (ranges): {"monday": {"isOpen": true, "ranges": [{"start": "09:00", "end": "17:00"}]}}

Only the first range of Format B is used: the salon runs one shared calendar
with a single open/close window per day.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from .config import time_str_to_minutes

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass(frozen=True)
class BusinessHoursDay:
    open: str = "09:00"
    close: str = "17:00"
    is_open: bool = True

    @property
    def open_minutes(self) -> int:
        return time_str_to_minutes(self.open)

    @property
    def close_minutes(self) -> int:
        return time_str_to_minutes(self.close)


DEFAULT_BUSINESS_HOURS: dict[str, BusinessHoursDay] = {
    "monday": BusinessHoursDay(),
    "tuesday": BusinessHoursDay(),
    "wednesday": BusinessHoursDay(),
    "thursday": BusinessHoursDay(),
    "friday": BusinessHoursDay(),
    "saturday": BusinessHoursDay(),
    "sunday": BusinessHoursDay(is_open=False),
}


@dataclass(frozen=True)
class BusinessHours:
    days: dict[str, BusinessHoursDay] = field(default_factory=lambda: dict(DEFAULT_BUSINESS_HOURS))

    def for_date(self, target_date: date) -> BusinessHoursDay:
        day_name = DAY_NAMES[target_date.weekday()]
        return self.days.get(day_name, DEFAULT_BUSINESS_HOURS[day_name])


def parse_business_hours(raw: Optional[dict]) -> BusinessHours:
    """Build BusinessHours from a stored JSON document (Format A or B)."""
    raw = raw or {}
    days: dict[str, BusinessHoursDay] = {}

    for day_name in DAY_NAMES:
        day_data = raw.get(day_name)
        default = DEFAULT_BUSINESS_HOURS[day_name]

        if not isinstance(day_data, dict):
            days[day_name] = default
            continue

        # Format B
        if isinstance(day_data.get("isOpen"), bool):
            ranges = day_data.get("ranges") or []
            first = ranges[0] if ranges else {}
            days[day_name] = BusinessHoursDay(
                open=first.get("start") or "09:00",
                close=first.get("end") or "17:00",
                is_open=day_data["isOpen"],
            )
            continue

        # Format A
        if isinstance(day_data.get("is_open"), bool):
            days[day_name] = BusinessHoursDay(
                open=day_data.get("open") or default.open,
                close=day_data.get("close") or default.close,
                is_open=day_data["is_open"],
            )
            continue

        days[day_name] = default

    return BusinessHours(days=days)


@dataclass(frozen=True)
class BlockedDate:
    date: date
    end_date: Optional[date] = None
    reason: Optional[str] = None

    def covers(self, target_date: date) -> bool:
        return self.date <= target_date <= (self.end_date or self.date)


@dataclass(frozen=True)
class BookingSettings:
    """
    Attributes:
        min_advance_minutes: Same-day lead time; today's slots starting at or
            before now + this are dropped
        max_advance_days: How far ahead dates are bookable
        buffer_minutes: Cleanup time appended to every service duration
        blocked_dates: Single days or inclusive ranges with no slots
        recurring_blocked_days: Weekdays with no slots, 0 = Sunday ... 6 = Saturday
    """
    min_advance_minutes: int = 30
    max_advance_days: int = 90
    buffer_minutes: int = 0
    blocked_dates: tuple[BlockedDate, ...] = ()
    recurring_blocked_days: tuple[int, ...] = ()

    def blocked_reason(self, target_date: date) -> Optional[str]:
        """Return why target_date is blocked, or None if it is bookable."""
        for blocked in self.blocked_dates:
            if blocked.covers(target_date):
                return blocked.reason or "Blocked date"

        sunday_based_weekday = (target_date.weekday() + 1) % 7
        if sunday_based_weekday in self.recurring_blocked_days:
            return "Closed on this weekday"

        return None


def parse_booking_settings(raw: Optional[dict]) -> BookingSettings:
    """Build BookingSettings from a stored JSON document."""
    raw = raw or {}
    defaults = BookingSettings()

    blocked: list[BlockedDate] = []
    for item in raw.get("blocked_dates") or []:
        try:
            start = _parse_iso_date(item["date"])
            end = _parse_iso_date(item["end_date"]) if item.get("end_date") else None
        except (KeyError, TypeError, ValueError):
            continue
        blocked.append(BlockedDate(date=start, end_date=end, reason=item.get("reason")))

    min_advance_minutes = raw.get("min_advance_minutes")
    if min_advance_minutes is None and raw.get("min_advance_hours") is not None:
        min_advance_minutes = int(raw["min_advance_hours"]) * 60

    return BookingSettings(
        min_advance_minutes=int(
            min_advance_minutes if min_advance_minutes is not None else defaults.min_advance_minutes
        ),
        max_advance_days=int(raw.get("max_advance_days", defaults.max_advance_days)),
        buffer_minutes=int(raw.get("buffer_minutes", defaults.buffer_minutes)),
        blocked_dates=tuple(blocked),
        recurring_blocked_days=tuple(int(d) for d in raw.get("recurring_blocked_days") or []),
    )


def _parse_iso_date(value) -> date:
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
