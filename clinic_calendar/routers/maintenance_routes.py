# clinic_calendar/routers/maintenance_routes.py

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends

from clinic_calendar.config import RETENTION_DAYS
from clinic_calendar.deps import get_repository
from clinic_calendar.repository import BookingRepository
from clinic_calendar.schemas import SweepResult

router = APIRouter(
    prefix="/maintenance",
    tags=["maintenance"],
)

@router.post("/sweep", response_model=SweepResult)
def sweep(
    cutoff: Optional[date] = None,
    repo: BookingRepository = Depends(get_repository),
):
    # default policy: keep the last RETENTION_DAYS days
    cutoff = cutoff or date.today() - timedelta(days=RETENTION_DAYS)
    return repo.sweep_older_than(cutoff)
