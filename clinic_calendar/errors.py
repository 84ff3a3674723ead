# clinic_calendar/errors.py

from typing import Optional


class BookingError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidSlotError(BookingError):
    """The requested duration does not fit from the given start slot."""

    status_code = 422


class AvailabilityError(BookingError):
    """The date/slot/dentist combination is not bookable right now."""

    status_code = 409

    def __init__(self, detail: str, reason: Optional[str] = None):
        super().__init__(detail)
        self.reason = reason


class NotFoundError(BookingError):
    status_code = 404


class PartialWriteError(BookingError):
    """A multi-slot write could not be completed or rolled back as a unit."""

    status_code = 500
