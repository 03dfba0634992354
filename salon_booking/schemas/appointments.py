# salon_booking/schemas/appointments.py

import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

PHONE_RE = re.compile(r"^[\d\s()+\-.]+$")

AppointmentStatus = Literal[
    "pending",
    "confirmed",
    "checked_in",
    "in_progress",
    "completed",
    "cancelled",
    "no_show",
]


class GuestInfo(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone: str = Field(min_length=10, max_length=20)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not PHONE_RE.match(v):
            raise ValueError("Phone number contains invalid characters")
        return v


class NewPet(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    size: Literal["small", "medium", "large", "xlarge"]
    breed_custom: Optional[str] = Field(None, max_length=100)
    weight: Optional[float] = Field(None, gt=0, le=300)


class AppointmentCreate(BaseModel):
    """Reservation request; either customer_id or guest_info, either pet_id or new_pet."""
    customer_id: Optional[int] = None
    guest_info: Optional[GuestInfo] = None
    pet_id: Optional[int] = None
    new_pet: Optional[NewPet] = None

    service_id: int
    scheduled_at: datetime
    duration_minutes: int = Field(gt=0, le=480)
    addon_ids: list[int] = Field(default_factory=list)
    total_price: float = Field(gt=0)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("addon_ids")
    @classmethod
    def dedupe_addons(cls, v: list[int]) -> list[int]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_identity(self) -> "AppointmentCreate":
        if self.customer_id is None and self.guest_info is None:
            raise ValueError("Either customer_id or guest_info must be provided")
        if self.pet_id is None and self.new_pet is None:
            raise ValueError("Either pet_id or new_pet must be provided")
        return self


class AppointmentCreated(BaseModel):
    success: bool = True
    appointment_id: int
    reference: str
    scheduled_at: datetime


class AppointmentRead(BaseModel):
    id: int
    customer_id: int
    pet_id: int
    service_id: int
    scheduled_at: datetime
    duration_minutes: int
    addon_ids: list[int] = []
    total_price: float
    status: str
    booking_reference: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, obj) -> "AppointmentRead":
        data = cls.model_validate(obj)
        data.addon_ids = [row.addon_id for row in obj.addons]
        return data


class StatusUpdate(BaseModel):
    status: AppointmentStatus
    cancellation_reason: Optional[str] = Field(None, max_length=500)
