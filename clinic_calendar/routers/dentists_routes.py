# clinic_calendar/routers/dentists_routes.py

from typing import Dict

from fastapi import APIRouter, Depends

from clinic_calendar.deps import get_repository, raise_http
from clinic_calendar.errors import BookingError
from clinic_calendar.repository import BookingRepository
from clinic_calendar.schemas import DentistPublic, DentistUpsert

router = APIRouter(
    prefix="/dentists",
    tags=["dentists"],
)

@router.get("", response_model=Dict[str, str])
def list_dentists(repo: BookingRepository = Depends(get_repository)):
    return repo.list_dentists()

@router.put("/{name}", response_model=DentistPublic)
def upsert_dentist(
    name: str,
    dentist: DentistUpsert,
    repo: BookingRepository = Depends(get_repository),
):
    db_dentist = repo.upsert_dentist(name, dentist.color)
    return {"name": db_dentist.name, "color": db_dentist.color}

@router.delete("/{name}", status_code=204)
def remove_dentist(
    name: str,
    repo: BookingRepository = Depends(get_repository),
):
    try:
        repo.remove_dentist(name)
    except BookingError as exc:
        raise_http(exc)
