# salon_booking/services/catalog.py
"""
Settings / service catalog collaborator.

The engine reads business hours, booking settings, service durations and
add-on prices through this interface only. The SQL implementation reads the
`services` / `addons` tables and the JSON documents of the `settings` table
(keys "business_hours" and "booking_settings").
"""

from typing import Iterable, Optional, Protocol

from sqlalchemy.orm import Session

from ..models import Addons, Services
from .repository import BookingRepository
from .slots.schedule import (
    BookingSettings,
    BusinessHours,
    parse_booking_settings,
    parse_business_hours,
)

BUSINESS_HOURS_KEY = "business_hours"
BOOKING_SETTINGS_KEY = "booking_settings"


class CatalogProvider(Protocol):

    def get_service(self, service_id: int) -> Optional[Services]: ...

    def get_addons(self, addon_ids: Iterable[int]) -> list[Addons]: ...

    def business_hours(self) -> BusinessHours: ...

    def booking_settings(self) -> BookingSettings: ...


class SqlCatalog:

    def __init__(self, db: Session):
        self.repo = BookingRepository(db)

    def get_service(self, service_id: int) -> Optional[Services]:
        return self.repo.get_service(service_id)

    def get_addons(self, addon_ids: Iterable[int]) -> list[Addons]:
        return self.repo.get_addons(addon_ids)

    def business_hours(self) -> BusinessHours:
        return parse_business_hours(self.repo.get_setting(BUSINESS_HOURS_KEY))

    def booking_settings(self) -> BookingSettings:
        return parse_booking_settings(self.repo.get_setting(BOOKING_SETTINGS_KEY))
