import json
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker

from salon_booking.database import build_engine
from salon_booking.models import (
    Addons,
    Appointments,
    Base,
    Pets,
    Services,
    Settings,
    Users,
    Waitlist,
)
from salon_booking.services.booking import BookingCoordinator
from salon_booking.services.locks import LocalDateLocks
from salon_booking.services.waitlist import WaitlistManager

# Monday; business hours default to Mon-Sat 09:00-17:00
NOW = datetime(2026, 3, 16, 8, 0)
TOMORROW = date(2026, 3, 17)
SUNDAY = date(2026, 3, 22)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture
def events():
    return []


@pytest.fixture
def emit(events):
    def record(event_type, payload):
        events.append((event_type, payload))
    return record


@pytest.fixture
def locks():
    return LocalDateLocks(timeout=5.0)


@pytest.fixture
def seeded(session_factory):
    with session_factory() as db:
        service = Services(name="Full Groom", duration_minutes=60, price=80.0, is_active=1)
        inactive = Services(name="Retired Service", duration_minutes=30, price=20.0, is_active=0)
        teeth = Addons(name="Teeth Brushing", price=15.0, is_active=1)
        nails = Addons(name="Nail Grinding", price=10.0, is_active=1)
        db.add_all([service, inactive, teeth, nails])

        customers = []
        pets = []
        for i, name in enumerate(["Alice", "Bob", "Carol"], start=1):
            user = Users(email=f"{name.lower()}@example.com", first_name=name, last_name="Smith", role="customer")
            db.add(user)
            db.flush()
            pet = Pets(owner_id=user.id, name=f"Rex {i}", size="medium")
            db.add(pet)
            db.flush()
            customers.append(user.id)
            pets.append(pet.id)

        db.commit()

        return SimpleNamespace(
            service_id=service.id,
            inactive_service_id=inactive.id,
            addon_ids=[teeth.id, nails.id],
            customer_id=customers[0],
            pet_id=pets[0],
            customer_ids=customers,
            pet_ids=pets,
        )


@pytest.fixture
def put_setting(session_factory):
    def put(key, value):
        with session_factory() as db:
            row = db.get(Settings, key)
            if row is None:
                db.add(Settings(key=key, value=json.dumps(value)))
            else:
                row.value = json.dumps(value)
            db.commit()
    return put


@pytest.fixture
def make_appointment(session_factory, seeded):
    counter = iter(range(1, 10_000))

    def make(start, duration=60, status="pending"):
        with session_factory() as db:
            appointment = Appointments(
                customer_id=seeded.customer_id,
                pet_id=seeded.pet_id,
                service_id=seeded.service_id,
                scheduled_at=start,
                duration_minutes=duration,
                total_price=80.0,
                status=status,
                booking_reference=f"APT-2026-9{next(counter):05d}",
            )
            db.add(appointment)
            db.commit()
            return appointment.id
    return make


@pytest.fixture
def make_waitlist_entry(session_factory, seeded, now):
    def make(customer_index=0, day=TOMORROW, preference="any", status="active", created_at=None):
        with session_factory() as db:
            entry = Waitlist(
                customer_id=seeded.customer_ids[customer_index],
                pet_id=seeded.pet_ids[customer_index],
                service_id=seeded.service_id,
                requested_date=day,
                time_preference=preference,
                status=status,
                created_at=created_at or now,
            )
            db.add(entry)
            db.commit()
            return entry.id
    return make


@pytest.fixture
def coordinator(session_factory, locks, clock, emit):
    return BookingCoordinator(session_factory, locks, clock=clock, emit=emit)


@pytest.fixture
def waitlist_manager(session_factory, locks, clock, emit):
    return WaitlistManager(session_factory, locks, clock=clock, emit=emit)


@pytest.fixture
def booking_payload(seeded):
    def build(**overrides):
        payload = {
            "customer_id": seeded.customer_id,
            "pet_id": seeded.pet_id,
            "service_id": seeded.service_id,
            "scheduled_at": datetime.combine(TOMORROW, datetime.min.time()) + timedelta(hours=10),
            "duration_minutes": 60,
            "addon_ids": [],
            "total_price": 80.0,
        }
        payload.update(overrides)
        return payload
    return build
