# salon_booking/services/slots/availability.py
"""
Service availability for one day.

Composes:
- candidate starts from business hours (generator)
- overlap test against the day's appointments (conflicts)
- waitlist demand for slots that are taken

Read-only: no writes and no locks. Calling it twice with no writes in between
returns the same result for the same `now`.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from ...errors import ErrorCode, Result, failure, success, validation_failure
from ..catalog import CatalogProvider, SqlCatalog
from ..clock import business_now
from ..repository import BookingRepository
from .config import BookingConfig, get_booking_config
from .conflicts import has_conflict
from .generator import generate_slot_starts, slot_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotInfo:
    time: str  # "HH:MM"
    duration_minutes: int
    available: bool
    waitlist_count: Optional[int] = None


@dataclass(frozen=True)
class DayAvailability:
    date: date
    service_id: int
    duration_minutes: int
    slots: list[SlotInfo] = field(default_factory=list)
    closed_reason: Optional[str] = None


def parse_date(value: Union[str, date]) -> Result[date]:
    """Parse "YYYY-MM-DD"; anything else is a validation failure."""
    if isinstance(value, datetime):
        return success(value.date())
    if isinstance(value, date):
        return success(value)
    try:
        return success(datetime.strptime(str(value).strip(), "%Y-%m-%d").date())
    except ValueError:
        return validation_failure("Invalid date format. Use YYYY-MM-DD", "date")


def calculate_service_availability(
    db: Session,
    service_id: int,
    target_date: Union[str, date],
    config: BookingConfig | None = None,
    now: datetime | None = None,
    catalog: CatalogProvider | None = None,
    clock: Callable[[], datetime] = business_now,
) -> Result[DayAvailability]:
    """
    Calculate offerable slots for a service on a day.

    Returns:
        Result with DayAvailability, or VALIDATION_ERROR (bad / past date)
        or NOT_FOUND (unknown or inactive service).
    """
    config = config or get_booking_config()
    now = now or clock()
    catalog = catalog or SqlCatalog(db)
    repo = BookingRepository(db)

    # Step 1: Validate input
    parsed = parse_date(target_date)
    if not parsed.ok:
        return parsed
    day = parsed.value

    if day < now.date():
        return validation_failure("Date cannot be in the past", "date")

    service = catalog.get_service(service_id)
    if not service:
        return failure(ErrorCode.NOT_FOUND, "Service not found")

    duration = service.duration_minutes
    booking_settings = catalog.booking_settings()

    def empty(reason: str) -> Result[DayAvailability]:
        return success(DayAvailability(
            date=day,
            service_id=service_id,
            duration_minutes=duration,
            closed_reason=reason,
        ))

    # Step 2: Day-level gates
    if day > now.date() + timedelta(days=booking_settings.max_advance_days):
        return empty("Beyond booking window")

    blocked_reason = booking_settings.blocked_reason(day)
    if blocked_reason:
        return empty(blocked_reason)

    day_hours = catalog.business_hours().for_date(day)
    if not day_hours.is_open:
        return empty("Closed")

    # Step 3: Candidate starts (buffer counts towards fitting before close)
    buffer = booking_settings.buffer_minutes
    starts = generate_slot_starts(day_hours, config.slot_step_minutes, duration + buffer)

    # Step 4: Drop same-day starts inside the lead time
    if day == now.date():
        cutoff = now + timedelta(minutes=booking_settings.min_advance_minutes)
        starts = [t for t in starts if slot_datetime(day, t) > cutoff]

    # Step 5: Conflicts and waitlist demand
    appointments = repo.appointments_on(day)
    waitlist = repo.active_waitlist_on(day) if starts else []

    slots: list[SlotInfo] = []
    for time_str in starts:
        start = slot_datetime(day, time_str)
        available = not has_conflict(start, duration, appointments, buffer)
        waitlist_count = None
        if not available:
            half = config.half_of_day(time_str)
            waitlist_count = sum(
                1 for entry in waitlist
                if entry.time_preference in (half, "any")
            )
        slots.append(SlotInfo(
            time=time_str,
            duration_minutes=duration,
            available=available,
            waitlist_count=waitlist_count,
        ))

    logger.debug(
        f"Availability {day} service={service_id}: "
        f"{sum(s.available for s in slots)}/{len(slots)} free"
    )

    return success(DayAvailability(
        date=day,
        service_id=service_id,
        duration_minutes=duration,
        slots=slots,
    ))
