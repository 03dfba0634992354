# salon_booking/services/booking.py
"""
Booking commit path.

BookingCoordinator is the only writer of appointments. A reservation either
commits exactly one non-overlapping appointment or returns SLOT_CONFLICT, also
when many requests target the same slot at once:

1. Validate the request (shape, future start, references, business hours)
2. Resolve / create customer and pet (compensated on any later failure)
3. Acquire the per-day lock
4. Re-check conflicts on a fresh session inside the lock
5. Insert appointment + add-on rows with a unique reference
6. Commit, release the lock, emit booking_created
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import (
    ErrorCode,
    Result,
    failure,
    internal_failure,
    pydantic_details,
    success,
    validation_failure,
)
from ..models import Addons, Appointments
from ..schemas.appointments import AppointmentCreate
from .catalog import CatalogProvider, SqlCatalog
from .clock import business_now, to_business_time
from .events import emit_event
from .identity import IdentityProvider, ResolvedCustomer, ResolvedPet, SqlIdentityProvider
from .locks import LockProvider, LockTimeout, booking_lock_key
from .references import generate_booking_reference
from .repository import BookingRepository
from .slots.conflicts import find_conflicts
from .slots.generator import fits_business_hours

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingConfirmation:
    appointment_id: int
    reference: str
    scheduled_at: datetime


class ReferenceExhausted(Exception):
    """No unused booking reference found within reference_max_attempts."""


class BookingCoordinator:

    def __init__(
        self,
        session_factory: sessionmaker,
        locks: LockProvider,
        identity: Optional[IdentityProvider] = None,
        catalog_factory: Callable[[Session], CatalogProvider] = SqlCatalog,
        clock: Callable[[], datetime] = business_now,
        emit: Callable[[str, dict], None] = emit_event,
        reference_max_attempts: int = 10,
        reference_generator: Callable[[int], str] = generate_booking_reference,
    ):
        self.session_factory = session_factory
        self.locks = locks
        self.identity = identity or SqlIdentityProvider(session_factory)
        self.catalog_factory = catalog_factory
        self.clock = clock
        self.emit = emit
        self.reference_max_attempts = reference_max_attempts
        self.reference_generator = reference_generator

    # ── Public API ───────────────────────────────────────────────────────

    def create_appointment(self, payload: Any) -> Result[BookingConfirmation]:
        """
        Commit a reservation.

        Args:
            payload: AppointmentCreate or a raw dict (validated here)

        Returns:
            Result with BookingConfirmation, or VALIDATION_ERROR / NOT_FOUND /
            EMAIL_EXISTS / SLOT_CONFLICT / INTERNAL_ERROR. No appointment row
            exists after a failed result.
        """
        parsed = self._parse(payload)
        if not parsed.ok:
            return parsed
        request = parsed.value

        now = self.clock()
        scheduled_at = to_business_time(request.scheduled_at).replace(second=0, microsecond=0)

        # Step 1: Validate everything that needs no writes
        try:
            checked = self._validate(request, scheduled_at, now)
        except SQLAlchemyError:
            logger.exception("Booking validation failed on storage error")
            return internal_failure()
        if not checked.ok:
            return checked
        addons, buffer_minutes = checked.value

        # Step 2: Identity side effects
        customer: Optional[ResolvedCustomer] = None
        pet: Optional[ResolvedPet] = None
        try:
            customer_result = self.identity.resolve_customer(request.customer_id, request.guest_info)
            if not customer_result.ok:
                return customer_result
            customer = customer_result.value

            pet_result = self.identity.resolve_pet(customer.id, request.pet_id, request.new_pet)
            if not pet_result.ok:
                self._compensate(customer, None)
                return pet_result
            pet = pet_result.value

            # Steps 3-6
            result = self._reserve(request, scheduled_at, customer, pet, addons, buffer_minutes, now)
        except Exception:
            logger.exception(
                f"Booking failed: service_id={request.service_id}, scheduled_at={scheduled_at}"
            )
            self._compensate(customer, pet)
            return internal_failure()

        if not result.ok:
            self._compensate(customer, pet)
            return result

        confirmation = result.value
        self.emit("booking_created", {
            "appointment_id": confirmation.appointment_id,
            "reference": confirmation.reference,
            "customer_id": customer.id,
            "scheduled_at": confirmation.scheduled_at.isoformat(),
        })
        return result

    # ── Steps ────────────────────────────────────────────────────────────

    def _parse(self, payload: Any) -> Result[AppointmentCreate]:
        if isinstance(payload, AppointmentCreate):
            return success(payload)
        try:
            return success(AppointmentCreate.model_validate(payload))
        except ValidationError as e:
            return failure(ErrorCode.VALIDATION_ERROR, "Validation error", details=pydantic_details(e))

    def _validate(
        self,
        request: AppointmentCreate,
        scheduled_at: datetime,
        now: datetime,
    ) -> Result[tuple[list[Addons], int]]:
        if scheduled_at <= now:
            return validation_failure("Scheduled time must be in the future", "scheduled_at")

        with self.session_factory() as db:
            catalog = self.catalog_factory(db)

            service = catalog.get_service(request.service_id)
            if not service:
                return failure(ErrorCode.NOT_FOUND, "Service not found")

            addons = catalog.get_addons(request.addon_ids)
            missing = set(request.addon_ids) - {a.id for a in addons}
            if missing:
                return validation_failure(
                    f"Unknown add-ons: {', '.join(str(i) for i in sorted(missing))}",
                    "addon_ids",
                )

            booking_settings = catalog.booking_settings()
            day = scheduled_at.date()

            if day > now.date() + timedelta(days=booking_settings.max_advance_days):
                return validation_failure("Date is beyond the booking window", "scheduled_at")

            blocked_reason = booking_settings.blocked_reason(day)
            if blocked_reason:
                return validation_failure(f"Date is not bookable: {blocked_reason}", "scheduled_at")

            day_hours = catalog.business_hours().for_date(day)
            buffer_minutes = booking_settings.buffer_minutes
            if not fits_business_hours(day_hours, scheduled_at, request.duration_minutes + buffer_minutes):
                return validation_failure("Requested time is outside business hours", "scheduled_at")

        return success((addons, buffer_minutes))

    def _reserve(
        self,
        request: AppointmentCreate,
        scheduled_at: datetime,
        customer: ResolvedCustomer,
        pet: ResolvedPet,
        addons: list[Addons],
        buffer_minutes: int,
        now: datetime,
    ) -> Result[BookingConfirmation]:
        day = scheduled_at.date()
        key = booking_lock_key(day)

        try:
            with self.locks.hold(key):
                # Fresh session opened inside the lock: sees every committed booking
                with self.session_factory() as db:
                    repo = BookingRepository(db)

                    conflicts = find_conflicts(
                        scheduled_at,
                        request.duration_minutes,
                        repo.appointments_on(day),
                        buffer_minutes,
                    )
                    if conflicts:
                        logger.info(
                            f"Slot conflict: {scheduled_at} ({request.duration_minutes} min) "
                            f"overlaps appointment_id={conflicts[0].id}"
                        )
                        return failure(ErrorCode.SLOT_CONFLICT, "Time slot no longer available")

                    appointment = self._insert(db, repo, request, scheduled_at, customer, pet, addons, now)
                    confirmation = BookingConfirmation(
                        appointment_id=appointment.id,
                        reference=appointment.booking_reference,
                        scheduled_at=appointment.scheduled_at,
                    )
        except LockTimeout as e:
            logger.error(f"Booking lock timeout: {e}")
            return internal_failure()
        except ReferenceExhausted:
            logger.error(f"Booking reference space exhausted for {now.year}")
            return internal_failure()

        logger.info(
            f"Appointment created: appointment_id={confirmation.appointment_id}, "
            f"reference={confirmation.reference}, customer_id={customer.id}, "
            f"service_id={request.service_id}, scheduled_at={scheduled_at}"
        )

        return success(confirmation)

    def _insert(
        self,
        db: Session,
        repo: BookingRepository,
        request: AppointmentCreate,
        scheduled_at: datetime,
        customer: ResolvedCustomer,
        pet: ResolvedPet,
        addons: list[Addons],
        now: datetime,
    ) -> Appointments:
        """Insert and commit, regenerating the reference on collision."""
        for _ in range(self.reference_max_attempts):
            reference = self.reference_generator(now.year)
            if repo.reference_exists(reference):
                continue

            appointment = Appointments(
                customer_id=customer.id,
                pet_id=pet.id,
                service_id=request.service_id,
                scheduled_at=scheduled_at,
                duration_minutes=request.duration_minutes,
                total_price=request.total_price,
                status="pending",
                booking_reference=reference,
                notes=request.notes,
                created_at=now,
                updated_at=now,
            )
            try:
                repo.add_appointment(appointment, addons)
                db.commit()
            except IntegrityError:
                db.rollback()
                if not repo.reference_exists(reference):
                    raise
                # taken by a concurrent booking on another day
                logger.warning(f"Booking reference collision: {reference}")
                continue
            return appointment

        raise ReferenceExhausted()

    def _compensate(
        self,
        customer: Optional[ResolvedCustomer],
        pet: Optional[ResolvedPet],
    ) -> None:
        try:
            self.identity.discard(customer, pet)
        except Exception:
            logger.exception(
                f"Compensation failed: customer={customer}, pet={pet}"
            )
