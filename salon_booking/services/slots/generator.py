# salon_booking/services/slots/generator.py
"""
Candidate slot generation.

Turns one day's business hours into the ordered list of start times at which
a service of the given duration can begin and still finish by closing time.
Pure: no I/O, no clock.
"""

from datetime import date, datetime, timedelta

from .config import minutes_to_time_str, time_str_to_minutes
from .schedule import BusinessHoursDay


def generate_slot_starts(
    day_hours: BusinessHoursDay,
    step_minutes: int,
    duration_minutes: int,
) -> list[str]:
    """
    Generate "HH:MM" start times for one day.

    Every returned start satisfies open <= start and start + duration <= close.
    A closed day yields an empty list.
    """
    if not day_hours.is_open:
        return []
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    open_min = day_hours.open_minutes
    close_min = day_hours.close_minutes

    starts: list[str] = []
    t = open_min
    while t + duration_minutes <= close_min:
        starts.append(minutes_to_time_str(t))
        t += step_minutes

    return starts


def slot_datetime(target_date: date, time_str: str) -> datetime:
    """Combine a date and an "HH:MM" start into a naive datetime."""
    return datetime.combine(target_date, datetime.min.time()) + timedelta(
        minutes=time_str_to_minutes(time_str)
    )


def fits_business_hours(
    day_hours: BusinessHoursDay,
    start: datetime,
    duration_minutes: int,
) -> bool:
    """Whether [start, start + duration) lies within the day's open window."""
    if not day_hours.is_open:
        return False
    start_min = start.hour * 60 + start.minute
    return (
        day_hours.open_minutes <= start_min
        and start_min + duration_minutes <= day_hours.close_minutes
    )
