# salon_booking/services/clock.py
"""
Business-timezone clock.

All appointment times are stored as naive datetimes in the single configured
business timezone.
"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import settings


def business_tz(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.business_timezone)


def business_now(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the business timezone (naive)."""
    return datetime.now(business_tz(tz_name)).replace(tzinfo=None)


def to_business_time(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Convert an aware datetime to naive business time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(business_tz(tz_name)).replace(tzinfo=None)
