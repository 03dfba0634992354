# salon_booking/routers/waitlist.py
"""
Waitlist API.

POST /waitlist              - join the waitlist for a date
POST /waitlist/{id}/cancel  - leave it
POST /waitlist/{id}/notified - record a slot offer sent by the notifier
GET  /waitlist/matches      - active entries near a freed slot (FIFO)
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from ..deps import get_waitlist_manager
from ..schemas.waitlist import WaitlistEntryRead, WaitlistJoin, WaitlistJoined
from ..services.waitlist import WaitlistManager

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


@router.post("", response_model=WaitlistJoined, status_code=status.HTTP_201_CREATED)
def join_waitlist(
    data: WaitlistJoin,
    manager: WaitlistManager = Depends(get_waitlist_manager),
):
    result = manager.join_waitlist(data)
    if not result.ok:
        return JSONResponse(result.error.to_response(), status_code=result.error.status_code)
    return result.value


@router.post("/{id}/cancel", response_model=WaitlistEntryRead)
def cancel_waitlist_entry(
    id: int,
    manager: WaitlistManager = Depends(get_waitlist_manager),
):
    result = manager.cancel_entry(id)
    if not result.ok:
        return JSONResponse(result.error.to_response(), status_code=result.error.status_code)
    return result.value


@router.post("/{id}/notified", response_model=WaitlistEntryRead)
def mark_waitlist_entry_notified(
    id: int,
    manager: WaitlistManager = Depends(get_waitlist_manager),
):
    result = manager.mark_notified(id)
    if not result.ok:
        return JSONResponse(result.error.to_response(), status_code=result.error.status_code)
    return result.value


@router.get("/matches", response_model=list[WaitlistEntryRead])
def get_matching_entries(
    service_id: int,
    date: date,
    limit: int = Query(10, ge=1, le=100),
    manager: WaitlistManager = Depends(get_waitlist_manager),
):
    return manager.find_matching_entries(service_id, date, limit=limit)
