# clinic_calendar/routers/appointments_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends

from clinic_calendar.config import SEARCH_HORIZON_DAYS
from clinic_calendar.deps import get_repository, raise_http
from clinic_calendar.errors import BookingError
from clinic_calendar.repository import BookingRepository
from clinic_calendar.schemas import (
    AppointmentPublic,
    BookingCancel,
    BookingCreate,
    BookingUpdate,
    CancelResult,
    CreatedBooking,
    DayView,
)
from clinic_calendar.services import cancel_and_rebook

router = APIRouter(
    tags=["appointments"],
)

@router.post("/appointments", response_model=CreatedBooking, status_code=201)
def create_appointment(
    booking: BookingCreate,
    repo: BookingRepository = Depends(get_repository),
):
    try:
        return repo.create_booking(
            booking.date,
            booking.slot,
            booking.appointment.model_dump(mode="json"),
        )
    except BookingError as exc:
        raise_http(exc)

@router.patch("/appointments", response_model=List[AppointmentPublic])
def update_appointment(
    update: BookingUpdate,
    repo: BookingRepository = Depends(get_repository),
):
    try:
        return repo.update_booking(
            update.date,
            update.slot,
            update.original.model_dump(mode="json"),
            update.changes.model_dump(mode="json", exclude_unset=True),
        )
    except BookingError as exc:
        raise_http(exc)

@router.post("/appointments/cancel", response_model=CancelResult)
def cancel_appointment(
    cancel: BookingCancel,
    repo: BookingRepository = Depends(get_repository),
):
    try:
        removed, rebooked = cancel_and_rebook(
            repo,
            cancel.date,
            cancel.slot,
            cancel.appointment.model_dump(mode="json"),
            rebook=cancel.rebook,
            horizon_days=SEARCH_HORIZON_DAYS,
        )
    except BookingError as exc:
        raise_http(exc)

    return {"removed": removed, "rebooked": rebooked}

@router.get("/days/{day}", response_model=DayView)
def get_day(
    day: date,
    repo: BookingRepository = Depends(get_repository),
):
    view = repo.day_view(day)
    view["meetings"] = [
        {"id": m.id, "date": m.date, "dentist": m.dentist, "period": m.period}
        for m in view["meetings"]
    ]
    return view
