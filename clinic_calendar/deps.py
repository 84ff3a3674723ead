# clinic_calendar/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from clinic_calendar.db import get_session
from clinic_calendar.errors import BookingError
from clinic_calendar.repository import BookingRepository

def get_repository(session: Session = Depends(get_session)) -> BookingRepository:
    return BookingRepository(session)

def raise_http(exc: BookingError):
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
