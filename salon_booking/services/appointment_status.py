# salon_booking/services/appointment_status.py
"""
Appointment status state machine.

pending → confirmed → checked_in → in_progress → completed
cancelled / no_show from any non-terminal state.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..errors import ErrorCode, Result, failure, success, validation_failure
from ..models import Appointments
from .clock import business_now
from .events import emit_event
from .repository import BookingRepository
from .statuses import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled", "no_show"}),
    "confirmed": frozenset({"checked_in", "cancelled", "no_show"}),
    "checked_in": frozenset({"in_progress", "cancelled", "no_show"}),
    "in_progress": frozenset({"completed", "cancelled", "no_show"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
    "no_show": frozenset(),
}


def can_transition(current: str, new_status: str) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    return new_status in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition_status(
    db: Session,
    appointment_id: int,
    new_status: str,
    cancellation_reason: Optional[str] = None,
    clock: Callable[[], datetime] = business_now,
    emit: Callable[[str, dict], None] = emit_event,
) -> Result[Appointments]:
    """
    Apply a status change.

    The write is conditional on the status read here, so a change committed
    by another request in between (e.g. a cancel) is never overwritten.

    Returns:
        Result with the updated appointment, NOT_FOUND, or VALIDATION_ERROR
        for a disallowed transition / missing cancellation reason / status
        changed concurrently.
    """
    repo = BookingRepository(db)
    appointment = repo.get_appointment(appointment_id)
    if not appointment:
        return failure(ErrorCode.NOT_FOUND, "Appointment not found")

    old_status = appointment.status
    if not can_transition(old_status, new_status):
        return validation_failure(
            f"Cannot transition from {old_status} to {new_status}",
            "status",
        )

    values = {"status": new_status, "updated_at": clock()}

    if new_status == "cancelled":
        reason = (cancellation_reason or "").strip()
        if not reason:
            return validation_failure("Cancellation reason is required", "cancellation_reason")
        if len(reason) > 500:
            return validation_failure("Cancellation reason is too long", "cancellation_reason")
        values["cancellation_reason"] = reason

    if not repo.update_appointment_status(appointment_id, old_status, values):
        db.rollback()
        logger.info(
            f"Status change rejected: appointment_id={appointment_id} "
            f"is no longer {old_status}"
        )
        return validation_failure(
            f"Appointment is no longer {old_status}, reload and retry",
            "status",
        )

    if new_status == "no_show":
        repo.increment_no_show_count(appointment.customer_id)

    db.commit()
    db.refresh(appointment)

    logger.info(
        f"Appointment status changed: appointment_id={appointment.id}, "
        f"{old_status} -> {new_status}"
    )

    emit("appointment_status_changed", {
        "appointment_id": appointment.id,
        "reference": appointment.booking_reference,
        "old_status": old_status,
        "new_status": new_status,
    })

    return success(appointment)
