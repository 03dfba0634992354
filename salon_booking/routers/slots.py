# salon_booking/routers/slots.py
"""
Availability API.

GET /availability?date=YYYY-MM-DD&service_id=N - slots for one service on one day
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.slots import AvailabilityResponse, SlotRead
from ..services.slots.availability import calculate_service_availability

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=AvailabilityResponse)
def get_availability(
    date: str,
    service_id: int,
    db: Session = Depends(get_db),
):
    result = calculate_service_availability(db, service_id, date)
    if not result.ok:
        return JSONResponse(result.error.to_response(), status_code=result.error.status_code)

    day = result.value
    return AvailabilityResponse(
        date=day.date,
        service_id=day.service_id,
        duration_minutes=day.duration_minutes,
        slots=[SlotRead.model_validate(s) for s in day.slots],
        closed_reason=day.closed_reason,
    )
