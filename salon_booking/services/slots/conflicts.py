# salon_booking/services/slots/conflicts.py
"""
Conflict detection between a candidate interval and existing appointments.

The same functions back the read path (availability) and the write path
(booking commit), so what is shown as free is exactly what may be booked.

Intervals are half-open: [start, start + duration). Two intervals conflict iff
a_start < b_end and b_start < a_end, so back-to-back bookings do not conflict.
Cancelled and no-show appointments hold no capacity.
"""

from datetime import datetime, timedelta
from typing import Iterable, Protocol

from ..statuses import CAPACITY_FREE_STATUSES


class BookedInterval(Protocol):
    scheduled_at: datetime
    duration_minutes: int
    status: str


def intervals_overlap(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    return a_start < b_end and b_start < a_end


def holds_capacity(appointment: BookedInterval) -> bool:
    return appointment.status not in CAPACITY_FREE_STATUSES


def find_conflicts(
    start: datetime,
    duration_minutes: int,
    appointments: Iterable[BookedInterval],
    buffer_minutes: int = 0,
) -> list:
    """
    Return the appointments overlapping [start, start + duration).

    buffer_minutes pads the end of both the candidate and every existing
    appointment (cleanup time between grooms).
    """
    end = start + timedelta(minutes=duration_minutes + buffer_minutes)

    conflicts = []
    for appointment in appointments:
        if not holds_capacity(appointment):
            continue
        booked_start = appointment.scheduled_at
        booked_end = booked_start + timedelta(
            minutes=appointment.duration_minutes + buffer_minutes
        )
        if intervals_overlap(start, end, booked_start, booked_end):
            conflicts.append(appointment)

    return conflicts


def has_conflict(
    start: datetime,
    duration_minutes: int,
    appointments: Iterable[BookedInterval],
    buffer_minutes: int = 0,
) -> bool:
    return bool(find_conflicts(start, duration_minutes, appointments, buffer_minutes))
