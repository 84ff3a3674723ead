# clinic_calendar/services.py

import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from clinic_calendar.errors import AvailabilityError
from clinic_calendar.repository import BookingRepository

logger = logging.getLogger(__name__)


def cancel_and_rebook(
    repo: BookingRepository,
    day: date,
    start_slot: str,
    appointment: dict,
    rebook: bool = False,
    horizon_days: int = 60,
) -> Tuple[int, Optional[dict]]:
    """Cancel a booking and, when asked, put it back as pending at the next opening.

    The search starts the day after the cancelled date and keeps the
    dentist and duration of the stored booking.
    """
    # 1) Cancel first; NotFoundError leaves the store untouched
    removed = repo.cancel_booking(day, start_slot, appointment)
    if not rebook:
        return len(removed), None

    stored = removed[0]
    fields = {
        "dentist": stored["dentist"],
        "patient": stored["patient"],
        "phone": stored["phone"],
        "treatment": stored["treatment"],
        "duration": stored["duration"],
        "status": "pending",
    }

    # 2) Walk the openings; another writer may take one between the query and the write
    for open_day, slot in repo.iter_open_slots(
        day + timedelta(days=1), fields["duration"], fields["dentist"], horizon_days=horizon_days
    ):
        try:
            created = repo.create_booking(open_day, slot, fields)
        except AvailabilityError:
            continue
        logger.info(f"Rebooked {stored['patient']} to {open_day} {slot}")
        return len(removed), created

    logger.warning(
        f"No opening for {fields['dentist']} within {horizon_days} days after {day}"
    )
    return len(removed), None
