# clinic_calendar/routers/schedule_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from clinic_calendar.deps import get_repository, raise_http
from clinic_calendar.errors import BookingError
from clinic_calendar.repository import BookingRepository
from clinic_calendar.schemas import LeaveCreate, LeavePublic, MeetingCreate, MeetingPublic

router = APIRouter(
    tags=["schedule"],
)

@router.get("/leave", response_model=List[LeavePublic])
def list_leave(
    on_date: Optional[date] = None,
    repo: BookingRepository = Depends(get_repository),
):
    return repo.list_leave(on_date)

@router.post("/leave", response_model=LeavePublic, status_code=201)
def record_leave(
    leave: LeaveCreate,
    repo: BookingRepository = Depends(get_repository),
):
    return repo.record_leave(leave.date, leave.dentist)

@router.delete("/leave", status_code=204)
def remove_leave(
    on_date: date,
    dentist: str = Query(min_length=1),
    repo: BookingRepository = Depends(get_repository),
):
    try:
        repo.remove_leave(on_date, dentist)
    except BookingError as exc:
        raise_http(exc)

@router.get("/meetings", response_model=List[MeetingPublic])
def list_meetings(
    on_date: Optional[date] = None,
    repo: BookingRepository = Depends(get_repository),
):
    return repo.list_meetings(on_date)

@router.post("/meetings", response_model=MeetingPublic, status_code=201)
def record_meeting(
    meeting: MeetingCreate,
    repo: BookingRepository = Depends(get_repository),
):
    return repo.record_meeting(meeting.date, meeting.dentist, meeting.period.value)

@router.delete("/meetings", status_code=204)
def remove_meeting(
    on_date: date,
    index: int = Query(ge=0),
    dentist: str = Query(min_length=1),
    repo: BookingRepository = Depends(get_repository),
):
    try:
        repo.remove_meeting(on_date, dentist, index)
    except BookingError as exc:
        raise_http(exc)
