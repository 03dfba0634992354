# salon_booking/schemas/waitlist.py

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel

TimePreference = Literal["morning", "afternoon", "any"]


class WaitlistJoin(BaseModel):
    customer_id: int
    pet_id: int
    service_id: int
    requested_date: date
    time_preference: TimePreference = "any"


class WaitlistEntryRead(BaseModel):
    id: int
    customer_id: int
    pet_id: int
    service_id: int
    requested_date: date
    time_preference: str
    status: str
    created_at: datetime
    notified_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class WaitlistJoined(BaseModel):
    success: bool = True
    waitlist_id: int
    position: int
