from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata


class Users(Base):
    __tablename__ = 'users'

    email = Column(Text, nullable=False, unique=True)
    first_name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, server_default=text("'customer'"))
    is_guest = Column(Integer, nullable=False, server_default=text('0'))
    no_show_count = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    last_name = Column(Text)
    phone = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    pets = relationship('Pets', back_populates='owner')
    appointments = relationship('Appointments', back_populates='customer')
    waitlist_entries = relationship('Waitlist', back_populates='customer')


class Pets(Base):
    __tablename__ = 'pets'

    owner_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    size = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    breed_custom = Column(Text)
    weight = Column(Float)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    owner = relationship('Users', back_populates='pets')
    appointments = relationship('Appointments', back_populates='pet')


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)

    appointments = relationship('Appointments', back_populates='service')


class Addons(Base):
    __tablename__ = 'addons'

    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)


class Appointments(Base):
    __tablename__ = 'appointments'
    __table_args__ = (
        Index('idx_appointments_scheduled_at', 'scheduled_at'),
        Index('idx_appointments_status', 'status'),
    )

    customer_id = Column(ForeignKey('users.id'), nullable=False)
    pet_id = Column(ForeignKey('pets.id'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    # naive datetime in the business timezone
    scheduled_at = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    total_price = Column(Float, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    booking_reference = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    cancellation_reason = Column(Text)
    created_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))

    customer = relationship('Users', back_populates='appointments')
    pet = relationship('Pets', back_populates='appointments')
    service = relationship('Services', back_populates='appointments')
    addons = relationship(
        'AppointmentAddons',
        back_populates='appointment',
        cascade='all, delete-orphan',
    )


class AppointmentAddons(Base):
    __tablename__ = 'appointment_addons'
    __table_args__ = (
        UniqueConstraint('appointment_id', 'addon_id'),
    )

    appointment_id = Column(ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False)
    addon_id = Column(ForeignKey('addons.id'), nullable=False)
    price = Column(Float, nullable=False)
    id = Column(Integer, primary_key=True)

    appointment = relationship('Appointments', back_populates='addons')


class Waitlist(Base):
    __tablename__ = 'waitlist'
    __table_args__ = (
        Index('idx_waitlist_date', 'requested_date'),
        # one active entry per customer per day
        Index(
            'uq_waitlist_active_customer_date',
            'customer_id',
            'requested_date',
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    customer_id = Column(ForeignKey('users.id'), nullable=False)
    pet_id = Column(ForeignKey('pets.id'), nullable=False)
    service_id = Column(ForeignKey('services.id'), nullable=False)
    requested_date = Column(Date, nullable=False)
    time_preference = Column(Text, nullable=False, server_default=text("'any'"))
    status = Column(Text, nullable=False, server_default=text("'active'"))
    created_at = Column(DateTime, nullable=False)
    id = Column(Integer, primary_key=True)
    notified_at = Column(DateTime)

    customer = relationship('Users', back_populates='waitlist_entries')


class Settings(Base):
    __tablename__ = 'settings'

    key = Column(Text, primary_key=True)
    # JSON document
    value = Column(Text, nullable=False, server_default=text("'{}'"))
    updated_at = Column(DateTime, server_default=text('CURRENT_TIMESTAMP'))
