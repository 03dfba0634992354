# salon_booking/routers/appointments.py

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_coordinator
from ..errors import ErrorCode, failure, validation_failure
from ..schemas.appointments import (
    AppointmentCreate,
    AppointmentCreated,
    AppointmentRead,
    StatusUpdate,
)
from ..services.appointment_status import transition_status
from ..services.booking import BookingCoordinator
from ..services.references import is_booking_reference
from ..services.repository import BookingRepository

router = APIRouter(prefix="/appointments", tags=["appointments"])


def error_response(result) -> JSONResponse:
    return JSONResponse(result.error.to_response(), status_code=result.error.status_code)


@router.post("", response_model=AppointmentCreated, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: AppointmentCreate,
    coordinator: BookingCoordinator = Depends(get_coordinator),
):
    result = coordinator.create_appointment(data)
    if not result.ok:
        return error_response(result)

    confirmation = result.value
    return AppointmentCreated(
        appointment_id=confirmation.appointment_id,
        reference=confirmation.reference,
        scheduled_at=confirmation.scheduled_at,
    )


@router.get("/reference/{reference}", response_model=AppointmentRead)
def get_appointment_by_reference(reference: str, db: Session = Depends(get_db)):
    reference = reference.strip().upper()
    if not is_booking_reference(reference):
        return error_response(validation_failure("Invalid booking reference", "reference"))
    obj = BookingRepository(db).get_appointment_by_reference(reference)
    if not obj:
        return error_response(failure(ErrorCode.NOT_FOUND, "Appointment not found"))
    return AppointmentRead.from_model(obj)


@router.get("/{id}", response_model=AppointmentRead)
def get_appointment(id: int, db: Session = Depends(get_db)):
    obj = BookingRepository(db).get_appointment(id)
    if not obj:
        return error_response(failure(ErrorCode.NOT_FOUND, "Appointment not found"))
    return AppointmentRead.from_model(obj)


@router.post("/{id}/status", response_model=AppointmentRead)
def update_status(
    id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
):
    result = transition_status(db, id, data.status, data.cancellation_reason)
    if not result.ok:
        return error_response(result)
    return AppointmentRead.from_model(result.value)
