from datetime import datetime

import pytest

from salon_booking.errors import ErrorCode
from salon_booking.models import Appointments, Users
from salon_booking.services.appointment_status import can_transition, transition_status
from salon_booking.services.slots.availability import calculate_service_availability

from .conftest import NOW, TOMORROW

START = datetime(2026, 3, 17, 10, 0)


@pytest.fixture
def appointment_id(make_appointment):
    return make_appointment(START)


def change(db, appointment_id, status, reason=None, emit=None, now=NOW):
    return transition_status(
        db, appointment_id, status, reason,
        clock=lambda: now,
        emit=emit or (lambda event_type, payload: None),
    )


@pytest.mark.parametrize("current,new", [
    ("pending", "confirmed"),
    ("confirmed", "checked_in"),
    ("checked_in", "in_progress"),
    ("in_progress", "completed"),
    ("pending", "cancelled"),
    ("in_progress", "no_show"),
])
def test_allowed(current, new):
    assert can_transition(current, new)


@pytest.mark.parametrize("current,new", [
    ("pending", "completed"),
    ("confirmed", "pending"),
    ("completed", "cancelled"),
    ("cancelled", "confirmed"),
    ("no_show", "pending"),
    ("pending", "pending"),
])
def test_disallowed(current, new):
    assert not can_transition(current, new)


def test_full_lifecycle(db, appointment_id, events, emit):
    for status in ("confirmed", "checked_in", "in_progress", "completed"):
        result = change(db, appointment_id, status, emit=emit)
        assert result.ok
        assert result.value.status == status

    assert [payload["new_status"] for _, payload in events] == [
        "confirmed", "checked_in", "in_progress", "completed",
    ]
    assert all(event_type == "appointment_status_changed" for event_type, _ in events)


def test_disallowed_transition_changes_nothing(db, appointment_id, session_factory):
    result = change(db, appointment_id, "completed")

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    with session_factory() as other:
        assert other.get(Appointments, appointment_id).status == "pending"


def test_stale_read_does_not_revive_cancelled_appointment(
    db, appointment_id, session_factory, make_appointment, events, emit,
):
    # this session still holds the appointment as pending
    assert db.get(Appointments, appointment_id).status == "pending"

    with session_factory() as other:
        assert change(other, appointment_id, "cancelled", "Owner is sick").ok
    rebooked_id = make_appointment(START)
    events.clear()

    result = change(db, appointment_id, "confirmed", emit=emit)

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert events == []
    with session_factory() as other:
        assert other.get(Appointments, appointment_id).status == "cancelled"
        assert other.get(Appointments, rebooked_id).status == "pending"


def test_terminal_is_final(db, appointment_id):
    assert change(db, appointment_id, "cancelled", "Owner is sick").ok
    assert change(db, appointment_id, "confirmed").error.code == ErrorCode.VALIDATION_ERROR


def test_cancel_requires_reason(db, appointment_id):
    result = change(db, appointment_id, "cancelled", "   ")

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details[0]["path"] == "cancellation_reason"


def test_cancel_stores_reason_and_frees_slot(db, seeded, appointment_id, session_factory):
    result = change(db, appointment_id, "cancelled", "Owner is sick")

    assert result.ok
    with session_factory() as other:
        assert other.get(Appointments, appointment_id).cancellation_reason == "Owner is sick"

        slots = {s.time: s for s in calculate_service_availability(other, seeded.service_id, TOMORROW, now=NOW).value.slots}
        assert slots["10:00"].available


def test_no_show_counts_against_customer(db, seeded, appointment_id, session_factory):
    assert change(db, appointment_id, "no_show").ok

    with session_factory() as other:
        assert other.get(Users, seeded.customer_id).no_show_count == 1


def test_updated_at_is_stamped(db, appointment_id):
    later = datetime(2026, 3, 16, 9, 15)

    result = change(db, appointment_id, "confirmed", now=later)

    assert result.value.updated_at == later


def test_unknown_appointment(db, seeded):
    assert change(db, 9999, "confirmed").error.code == ErrorCode.NOT_FOUND
