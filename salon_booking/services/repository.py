# salon_booking/services/repository.py
"""
Storage access for the booking engine.

BookingRepository wraps one SQLAlchemy session. Writers build it inside their
critical section from a fresh session (see services.booking / services.waitlist),
readers build it on the request session. The SQLite engine used by the tests is
the in-memory double behind the same contract.
"""

import json
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ..models import (
    Addons,
    AppointmentAddons,
    Appointments,
    Pets,
    Services,
    Settings,
    Users,
    Waitlist,
)
from .statuses import CAPACITY_FREE_STATUSES


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, datetime.min.time())
    return start, start + timedelta(days=1)


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    # ── Catalog ──────────────────────────────────────────────────────────

    def get_service(self, service_id: int) -> Optional[Services]:
        return self.db.query(Services).filter(
            Services.id == service_id,
            Services.is_active == 1,
        ).first()

    def get_addons(self, addon_ids: Iterable[int]) -> list[Addons]:
        ids = list(addon_ids)
        if not ids:
            return []
        return self.db.query(Addons).filter(
            Addons.id.in_(ids),
            Addons.is_active == 1,
        ).all()

    def get_setting(self, key: str) -> Optional[dict]:
        row = self.db.get(Settings, key)
        if not row or not row.value:
            return None
        try:
            value = json.loads(row.value)
        except json.JSONDecodeError:
            return None
        return value if isinstance(value, dict) else None

    # ── Identity ─────────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> Optional[Users]:
        return self.db.get(Users, user_id)

    def find_user_by_email(self, email: str) -> Optional[Users]:
        return self.db.query(Users).filter(
            func.lower(Users.email) == email.strip().lower()
        ).first()

    def get_pet(self, pet_id: int) -> Optional[Pets]:
        return self.db.get(Pets, pet_id)

    # ── Appointments ─────────────────────────────────────────────────────

    def get_appointment(self, appointment_id: int) -> Optional[Appointments]:
        return self.db.get(Appointments, appointment_id)

    def appointments_on(self, day: date) -> list[Appointments]:
        """Appointments starting on `day` that still hold capacity."""
        start, end = day_bounds(day)
        return (
            self.db.query(Appointments)
            .filter(
                Appointments.scheduled_at >= start,
                Appointments.scheduled_at < end,
                Appointments.status.notin_(CAPACITY_FREE_STATUSES),
            )
            .order_by(Appointments.scheduled_at)
            .all()
        )

    def get_appointment_by_reference(self, reference: str) -> Optional[Appointments]:
        return self.db.query(Appointments).filter(
            Appointments.booking_reference == reference
        ).first()

    def update_appointment_status(self, appointment_id: int, expected_status: str, values: dict) -> bool:
        """Compare-and-set: applies `values` only while the row still has `expected_status`."""
        updated = self.db.query(Appointments).filter(
            Appointments.id == appointment_id,
            Appointments.status == expected_status,
        ).update(values, synchronize_session=False)
        return updated == 1

    def increment_no_show_count(self, user_id: int) -> None:
        self.db.query(Users).filter(Users.id == user_id).update(
            {Users.no_show_count: Users.no_show_count + 1},
            synchronize_session=False,
        )

    def reference_exists(self, reference: str) -> bool:
        return self.db.query(Appointments.id).filter(
            Appointments.booking_reference == reference
        ).first() is not None

    def add_appointment(self, appointment: Appointments, addons: list[Addons]) -> Appointments:
        for addon in addons:
            appointment.addons.append(
                AppointmentAddons(addon_id=addon.id, price=addon.price)
            )
        self.db.add(appointment)
        self.db.flush()
        return appointment

    # ── Waitlist ─────────────────────────────────────────────────────────

    def get_waitlist_entry(self, entry_id: int) -> Optional[Waitlist]:
        return self.db.get(Waitlist, entry_id)

    def active_waitlist_entry(self, customer_id: int, day: date) -> Optional[Waitlist]:
        return self.db.query(Waitlist).filter(
            Waitlist.customer_id == customer_id,
            Waitlist.requested_date == day,
            Waitlist.status == "active",
        ).first()

    def active_waitlist_on(self, day: date) -> list[Waitlist]:
        return (
            self.db.query(Waitlist)
            .filter(
                Waitlist.requested_date == day,
                Waitlist.status == "active",
            )
            .order_by(Waitlist.created_at, Waitlist.id)
            .all()
        )

    def waitlist_position(self, entry: Waitlist) -> int:
        """1-based FIFO rank of `entry` among the active entries of its date."""
        return self.db.query(func.count(Waitlist.id)).filter(
            Waitlist.requested_date == entry.requested_date,
            Waitlist.status == "active",
            or_(
                Waitlist.created_at < entry.created_at,
                and_(Waitlist.created_at == entry.created_at, Waitlist.id <= entry.id),
            ),
        ).scalar()

    def active_waitlist_for_service(
        self,
        service_id: int,
        date_from: date,
        date_to: date,
        limit: int,
    ) -> list[Waitlist]:
        return (
            self.db.query(Waitlist)
            .filter(
                Waitlist.service_id == service_id,
                Waitlist.status == "active",
                Waitlist.requested_date >= date_from,
                Waitlist.requested_date <= date_to,
            )
            .order_by(Waitlist.created_at, Waitlist.id)
            .limit(limit)
            .all()
        )
