# clinic_calendar/routers/availability_routes.py

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from clinic_calendar.config import SEARCH_HORIZON_DAYS
from clinic_calendar.data import DURATION_SLOTS, PERIOD_SLOTS, TIME_SLOTS, next_monday
from clinic_calendar.deps import get_repository, raise_http
from clinic_calendar.errors import BookingError
from clinic_calendar.repository import BookingRepository
from clinic_calendar.schemas import (
    AvailabilityResponse,
    Duration,
    GridResponse,
    NextOpeningResponse,
    PeriodFilter,
)

router = APIRouter(
    tags=["availability"],
)

@router.get("/grid", response_model=GridResponse)
def get_grid():
    return {
        "slots": list(TIME_SLOTS),
        "periods": {name: list(slots) for name, slots in PERIOD_SLOTS.items()},
        "durations": DURATION_SLOTS,
    }

@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    date: date,
    duration: Duration,
    dentist: str = Query(min_length=1),
    slot: Optional[str] = None,
    period: PeriodFilter = PeriodFilter.all,
    repo: BookingRepository = Depends(get_repository),
):
    try:
        available = repo.find_available_slots(
            date, duration.value, dentist, explicit_slot=slot, period=period.value
        )
    except BookingError as exc:
        raise_http(exc)

    return {
        "dentist": dentist,
        "date": date,
        "duration": duration,
        "available_slots": available,
    }

@router.get("/availability/next", response_model=NextOpeningResponse)
def get_next_opening(
    duration: Duration,
    dentist: str = Query(min_length=1),
    start: Optional[date] = None,
    delay_days: int = Query(default=0, ge=0),
    period: PeriodFilter = PeriodFilter.all,
    repo: BookingRepository = Depends(get_repository),
):
    # search from start (default today) pushed back by delay_days;
    # a weekend start moves to the following Monday
    first_day = next_monday((start or date.today()) + timedelta(days=delay_days))

    opening = repo.find_next_opening(
        first_day,
        duration.value,
        dentist,
        period=period.value,
        horizon_days=SEARCH_HORIZON_DAYS,
    )
    if opening is None:
        return {"dentist": dentist, "duration": duration, "found": False}

    found_day, slot = opening
    return {
        "dentist": dentist,
        "duration": duration,
        "found": True,
        "date": found_day,
        "slot": slot,
    }
