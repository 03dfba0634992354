from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

from salon_booking.errors import ErrorCode
from salon_booking.models import AppointmentAddons, Appointments, Pets, Users
from salon_booking.services.booking import BookingCoordinator
from salon_booking.services.locks import LockTimeout
from salon_booking.services.references import is_booking_reference

from .conftest import NOW, SUNDAY, TOMORROW

GUEST = {
    "first_name": "Dana",
    "last_name": "Walker",
    "email": "Dana.Walker@Example.com",
    "phone": "(555) 123-4567",
}
NEW_PET = {"name": "Biscuit", "size": "small", "breed_custom": "Shih Tzu"}


def at(hour, minute=0, day=TOMORROW):
    return datetime.combine(day, datetime.min.time()) + timedelta(hours=hour, minutes=minute)


def count(session_factory, model):
    with session_factory() as db:
        return db.query(model).count()


def test_books_free_slot(coordinator, booking_payload, session_factory, events):
    result = coordinator.create_appointment(booking_payload())

    assert result.ok
    assert is_booking_reference(result.value.reference)
    assert result.value.reference.startswith("APT-2026-")
    assert result.value.scheduled_at == at(10)

    with session_factory() as db:
        appointment = db.get(Appointments, result.value.appointment_id)
        assert appointment.status == "pending"
        assert appointment.booking_reference == result.value.reference

    assert events[0][0] == "booking_created"
    assert events[0][1]["appointment_id"] == result.value.appointment_id


def test_stores_addon_prices(coordinator, booking_payload, seeded, session_factory):
    result = coordinator.create_appointment(booking_payload(addon_ids=seeded.addon_ids + [seeded.addon_ids[0]]))

    assert result.ok
    with session_factory() as db:
        rows = db.query(AppointmentAddons).filter_by(appointment_id=result.value.appointment_id).all()
        assert sorted(r.price for r in rows) == [10.0, 15.0]


def test_aware_start_is_converted_to_business_time(coordinator, booking_payload):
    # 14:00 UTC is 10:00 in New York on 2026-03-17 (EDT)
    start = datetime(2026, 3, 17, 14, 0, tzinfo=timezone.utc)

    result = coordinator.create_appointment(booking_payload(scheduled_at=start))

    assert result.ok
    assert result.value.scheduled_at == at(10)


def test_overlapping_slot_conflicts(coordinator, booking_payload, make_appointment, session_factory, events):
    make_appointment(at(10))

    result = coordinator.create_appointment(booking_payload(scheduled_at=at(9, 30)))

    assert result.error.code == ErrorCode.SLOT_CONFLICT
    assert result.error.status_code == 409
    assert count(session_factory, Appointments) == 1
    assert events == []


def test_back_to_back_is_allowed(coordinator, booking_payload, make_appointment):
    make_appointment(at(10))

    assert coordinator.create_appointment(booking_payload(scheduled_at=at(11))).ok


def test_cancelled_slot_can_be_rebooked(coordinator, booking_payload, make_appointment):
    make_appointment(at(10), status="cancelled")

    assert coordinator.create_appointment(booking_payload()).ok


def test_buffer_applies_on_commit(coordinator, booking_payload, make_appointment, put_setting):
    put_setting("booking_settings", {"buffer_minutes": 15})
    make_appointment(at(10))

    result = coordinator.create_appointment(booking_payload(scheduled_at=at(11)))

    assert result.error.code == ErrorCode.SLOT_CONFLICT


def test_concurrent_identical_requests_single_winner(coordinator, booking_payload, session_factory):
    payload = booking_payload(scheduled_at=at(13))

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: coordinator.create_appointment(payload), range(8)))

    winners = [r for r in results if r.ok]
    losers = [r for r in results if not r.ok]
    assert len(winners) == 1
    assert all(r.error.code == ErrorCode.SLOT_CONFLICT for r in losers)
    assert count(session_factory, Appointments) == 1


def test_concurrent_different_days_all_succeed(coordinator, booking_payload, session_factory):
    days = [TOMORROW + timedelta(days=i) for i in range(3)]
    payloads = [booking_payload(scheduled_at=at(10, day=d)) for d in days]

    with ThreadPoolExecutor(max_workers=3) as pool:
        results = list(pool.map(coordinator.create_appointment, payloads))

    assert all(r.ok for r in results)
    assert count(session_factory, Appointments) == 3


# ── Validation ───────────────────────────────────────────────────────────


def test_past_start_rejected(coordinator, booking_payload, session_factory):
    result = coordinator.create_appointment(booking_payload(scheduled_at=NOW - timedelta(hours=1)))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details[0]["path"] == "scheduled_at"
    assert count(session_factory, Appointments) == 0


def test_missing_identity_rejected(coordinator, booking_payload):
    payload = booking_payload()
    del payload["customer_id"]

    result = coordinator.create_appointment(payload)

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details


def test_field_constraints(coordinator, booking_payload):
    for overrides in ({"duration_minutes": 0}, {"total_price": 0}, {"notes": "x" * 501}):
        result = coordinator.create_appointment(booking_payload(**overrides))
        assert result.error.code == ErrorCode.VALIDATION_ERROR, overrides


def test_unknown_service(coordinator, booking_payload):
    result = coordinator.create_appointment(booking_payload(service_id=9999))
    assert result.error.code == ErrorCode.NOT_FOUND


def test_unknown_addon(coordinator, booking_payload):
    result = coordinator.create_appointment(booking_payload(addon_ids=[9999]))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details[0]["path"] == "addon_ids"


def test_unknown_customer(coordinator, booking_payload):
    result = coordinator.create_appointment(booking_payload(customer_id=9999))
    assert result.error.code == ErrorCode.NOT_FOUND


def test_foreign_pet_rejected(coordinator, booking_payload, seeded):
    result = coordinator.create_appointment(booking_payload(pet_id=seeded.pet_ids[1]))

    assert result.error.code == ErrorCode.VALIDATION_ERROR
    assert result.error.details[0]["path"] == "pet_id"


def test_outside_business_hours(coordinator, booking_payload):
    assert coordinator.create_appointment(booking_payload(scheduled_at=at(16, 30))).error.code == ErrorCode.VALIDATION_ERROR
    assert coordinator.create_appointment(booking_payload(scheduled_at=at(10, day=SUNDAY))).error.code == ErrorCode.VALIDATION_ERROR


def test_blocked_day(coordinator, booking_payload, put_setting):
    put_setting("booking_settings", {"blocked_dates": [{"date": TOMORROW.isoformat(), "reason": "Closed for repairs"}]})

    result = coordinator.create_appointment(booking_payload())

    assert result.error.code == ErrorCode.VALIDATION_ERROR


def test_email_of_other_customer(coordinator, booking_payload):
    guest = dict(GUEST, email="bob@example.com")

    result = coordinator.create_appointment(booking_payload(guest_info=guest))

    assert result.error.code == ErrorCode.EMAIL_EXISTS


# ── Guests and compensation ──────────────────────────────────────────────


def guest_payload(booking_payload, **overrides):
    payload = booking_payload(guest_info=GUEST, new_pet=NEW_PET, **overrides)
    del payload["customer_id"]
    del payload["pet_id"]
    return payload


def test_guest_booking_creates_customer_and_pet(coordinator, booking_payload, session_factory):
    result = coordinator.create_appointment(guest_payload(booking_payload))

    assert result.ok
    with session_factory() as db:
        appointment = db.get(Appointments, result.value.appointment_id)
        user = db.get(Users, appointment.customer_id)
        pet = db.get(Pets, appointment.pet_id)
        assert user.email == "dana.walker@example.com"
        assert user.is_guest == 1
        assert pet.name == "Biscuit"
        assert pet.owner_id == user.id


def test_returning_guest_reuses_customer(coordinator, booking_payload, session_factory):
    first = coordinator.create_appointment(guest_payload(booking_payload))
    second = coordinator.create_appointment(guest_payload(booking_payload, scheduled_at=at(14)))

    assert first.ok and second.ok
    with session_factory() as db:
        assert db.query(Users).filter(Users.email == "dana.walker@example.com").count() == 1


def test_conflict_removes_created_guest_and_pet(coordinator, booking_payload, make_appointment, session_factory):
    make_appointment(at(10))
    users_before = count(session_factory, Users)
    pets_before = count(session_factory, Pets)

    result = coordinator.create_appointment(guest_payload(booking_payload))

    assert result.error.code == ErrorCode.SLOT_CONFLICT
    assert count(session_factory, Users) == users_before
    assert count(session_factory, Pets) == pets_before


class TimingOutLocks:

    @contextmanager
    def hold(self, key):
        raise LockTimeout(key, 0.01)
        yield


def test_lock_timeout_is_internal_and_compensates(session_factory, seeded, clock, emit, booking_payload):
    coordinator = BookingCoordinator(session_factory, TimingOutLocks(), clock=clock, emit=emit)
    users_before = count(session_factory, Users)

    result = coordinator.create_appointment(guest_payload(booking_payload))

    assert result.error.code == ErrorCode.INTERNAL_ERROR
    assert result.error.status_code == 500
    assert count(session_factory, Users) == users_before
    assert count(session_factory, Appointments) == 0


# ── References ───────────────────────────────────────────────────────────


def test_reference_regenerated_on_collision(session_factory, locks, clock, emit, booking_payload):
    references = iter(["APT-2026-000001", "APT-2026-000001", "APT-2026-000002"])
    coordinator = BookingCoordinator(
        session_factory, locks, clock=clock, emit=emit,
        reference_generator=lambda year: next(references),
    )

    first = coordinator.create_appointment(booking_payload(scheduled_at=at(9)))
    second = coordinator.create_appointment(booking_payload(scheduled_at=at(11)))

    assert first.value.reference == "APT-2026-000001"
    assert second.value.reference == "APT-2026-000002"


def test_reference_exhaustion(session_factory, locks, clock, emit, booking_payload):
    coordinator = BookingCoordinator(
        session_factory, locks, clock=clock, emit=emit,
        reference_max_attempts=3,
        reference_generator=lambda year: "APT-2026-000001",
    )
    assert coordinator.create_appointment(booking_payload(scheduled_at=at(9))).ok

    result = coordinator.create_appointment(booking_payload(scheduled_at=at(11)))

    assert result.error.code == ErrorCode.INTERNAL_ERROR
    assert count(session_factory, Appointments) == 1
