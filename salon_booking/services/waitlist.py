# salon_booking/services/waitlist.py
"""
Waitlist admission and FIFO ordering.

Joins for one date serialize on the per-date waitlist lock; the partial unique
index on (customer_id, requested_date) WHERE status = 'active' backs the same
rule at the storage level. Position is the 1-based rank among active entries
of the date ordered by (created_at, id).
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..errors import (
    ErrorCode,
    Result,
    failure,
    internal_failure,
    pydantic_details,
    success,
    validation_failure,
)
from ..models import Waitlist
from ..schemas.waitlist import WaitlistEntryRead, WaitlistJoin, WaitlistJoined
from .clock import business_now
from .events import emit_event
from .locks import LockProvider, LockTimeout, waitlist_lock_key
from .repository import BookingRepository

logger = logging.getLogger(__name__)

MATCH_WINDOW_DAYS = 3


class WaitlistManager:

    def __init__(
        self,
        session_factory: sessionmaker,
        locks: LockProvider,
        clock: Callable[[], datetime] = business_now,
        emit: Callable[[str, dict], None] = emit_event,
    ):
        self.session_factory = session_factory
        self.locks = locks
        self.clock = clock
        self.emit = emit

    def join_waitlist(self, payload: Any) -> Result[WaitlistJoined]:
        """
        Add a customer to the waitlist for a date.

        Returns:
            Result with WaitlistJoined, or VALIDATION_ERROR / NOT_FOUND /
            DUPLICATE_ENTRY (carrying `existing_entry`) / INTERNAL_ERROR.
        """
        if isinstance(payload, WaitlistJoin):
            request = payload
        else:
            try:
                request = WaitlistJoin.model_validate(payload)
            except ValidationError as e:
                return failure(ErrorCode.VALIDATION_ERROR, "Validation error", details=pydantic_details(e))

        if request.requested_date < self.clock().date():
            return validation_failure("Requested date cannot be in the past", "requested_date")

        try:
            with self.session_factory() as db:
                checked = self._check_references(BookingRepository(db), request)
            if not checked.ok:
                return checked

            with self.locks.hold(waitlist_lock_key(request.requested_date)):
                # FIFO timestamp taken under the lock: created_at order == commit order
                created_at = self.clock()
                with self.session_factory() as db:
                    repo = BookingRepository(db)

                    existing = repo.active_waitlist_entry(request.customer_id, request.requested_date)
                    if existing:
                        return self._duplicate(existing)

                    entry = Waitlist(
                        customer_id=request.customer_id,
                        pet_id=request.pet_id,
                        service_id=request.service_id,
                        requested_date=request.requested_date,
                        time_preference=request.time_preference,
                        status="active",
                        created_at=created_at,
                    )
                    db.add(entry)
                    try:
                        db.commit()
                    except IntegrityError:
                        # Raced past the lock (other worker without a shared lock backend)
                        db.rollback()
                        existing = repo.active_waitlist_entry(request.customer_id, request.requested_date)
                        if not existing:
                            raise
                        return self._duplicate(existing)

                    position = repo.waitlist_position(entry)
                    joined = WaitlistJoined(waitlist_id=entry.id, position=position)
        except LockTimeout as e:
            logger.error(f"Waitlist lock timeout: {e}")
            return internal_failure()
        except SQLAlchemyError:
            logger.exception(
                f"Waitlist join failed: customer_id={request.customer_id}, "
                f"date={request.requested_date}"
            )
            return internal_failure()

        logger.info(
            f"Waitlist joined: waitlist_id={joined.waitlist_id}, customer_id={request.customer_id}, "
            f"date={request.requested_date}, position={joined.position}"
        )
        self.emit("waitlist_joined", {
            "waitlist_id": joined.waitlist_id,
            "customer_id": request.customer_id,
            "requested_date": request.requested_date.isoformat(),
            "position": joined.position,
        })
        return success(joined)

    def _check_references(self, repo: BookingRepository, request: WaitlistJoin) -> Result[None]:
        if not repo.get_user(request.customer_id):
            return failure(ErrorCode.NOT_FOUND, "Customer not found")
        pet = repo.get_pet(request.pet_id)
        if not pet:
            return failure(ErrorCode.NOT_FOUND, "Pet not found")
        if pet.owner_id != request.customer_id:
            return validation_failure("Pet does not belong to this customer", "pet_id")
        if not repo.get_service(request.service_id):
            return failure(ErrorCode.NOT_FOUND, "Service not found")
        return success(None)

    def _duplicate(self, existing: Waitlist) -> Result:
        logger.info(
            f"Waitlist duplicate: customer_id={existing.customer_id}, "
            f"date={existing.requested_date}, existing_id={existing.id}"
        )
        return failure(
            ErrorCode.DUPLICATE_ENTRY,
            "Customer is already on the waitlist for this date",
            existing_entry=WaitlistEntryRead.model_validate(existing).model_dump(mode="json"),
        )

    # ── Follow-up operations ─────────────────────────────────────────────

    def cancel_entry(self, entry_id: int) -> Result[WaitlistEntryRead]:
        with self.session_factory() as db:
            entry = BookingRepository(db).get_waitlist_entry(entry_id)
            if not entry:
                return failure(ErrorCode.NOT_FOUND, "Waitlist entry not found")
            if entry.status != "active":
                return validation_failure(f"Waitlist entry is already {entry.status}", "status")

            entry.status = "cancelled"
            db.commit()

            logger.info(f"Waitlist entry cancelled: waitlist_id={entry.id}")
            return success(WaitlistEntryRead.model_validate(entry))

    def mark_notified(self, entry_id: int) -> Result[WaitlistEntryRead]:
        """Record that a slot offer went out for this entry."""
        with self.session_factory() as db:
            entry = BookingRepository(db).get_waitlist_entry(entry_id)
            if not entry:
                return failure(ErrorCode.NOT_FOUND, "Waitlist entry not found")
            if entry.status != "active":
                return validation_failure(f"Waitlist entry is already {entry.status}", "status")

            entry.status = "notified"
            entry.notified_at = self.clock()
            db.commit()

            logger.info(f"Waitlist entry notified: waitlist_id={entry.id}")
            return success(WaitlistEntryRead.model_validate(entry))

    def find_matching_entries(
        self,
        service_id: int,
        slot_date: date,
        window_days: int = MATCH_WINDOW_DAYS,
        limit: int = 10,
    ) -> list[WaitlistEntryRead]:
        """Active entries for the service within ±window_days of a freed slot, FIFO."""
        date_from = slot_date - timedelta(days=window_days)
        date_to = slot_date + timedelta(days=window_days)
        with self.session_factory() as db:
            rows = BookingRepository(db).active_waitlist_for_service(
                service_id, date_from, date_to, limit
            )
            return [WaitlistEntryRead.model_validate(row) for row in rows]

