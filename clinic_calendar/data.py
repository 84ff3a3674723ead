# clinic_calendar/data.py

from datetime import date, timedelta
from typing import Optional

MORNING_SLOTS = (
    "09:00-09:30",
    "09:30-10:00",
    "10:00-10:30",
    "10:30-11:00",
)

AFTERNOON_SLOTS = (
    "13:00-13:30",
    "13:30-14:00",
    "14:00-14:30",
    "14:30-15:00",
)

# Chronological order, lunch gap between the two blocks
TIME_SLOTS = MORNING_SLOTS + AFTERNOON_SLOTS

PERIOD_SLOTS = {
    "morning": MORNING_SLOTS,
    "afternoon": AFTERNOON_SLOTS,
}

# duration -> number of consecutive atomic slots
DURATION_SLOTS = {
    "30min": 1,
    "1hour": 2,
    "2hours": 4,
}

# Mon-Thu the first two morning slots are kept for clinical dentists
RESTRICTED_MORNING_SLOTS = ("09:00-09:30", "09:30-10:00")
RESTRICTED_WEEKDAYS = (0, 1, 2, 3)  # 0 = Monday

GENERAL_BOOKING = "general"
STAFF = "staff"
NON_CLINICAL_ROLES = (GENERAL_BOOKING, STAFF)

# Leave sentinel: the whole clinic is closed that date
ALL_STAFF_LEAVE = "all"

DEFAULT_DENTISTS = {
    "DC": "#FF5733",
    "DD": "#33FF57",
    "DPa": "#3357FF",
    "DPu": "#F033FF",
    "DT": "#FF33A8",
    GENERAL_BOOKING: "#808080",
    STAFF: "#FFC300",
    "school": "#FFC0CB",
}


def normalize_slot(label: str) -> Optional[str]:
    """Map a slot label to its canonical form, e.g. "9:00-9:30" -> "09:00-09:30".

    Returns None when the label is not one of the atomic slots.
    """
    try:
        start, end = label.strip().split("-")
        start_h, start_m = start.split(":")
        end_h, end_m = end.split(":")
        canonical = f"{int(start_h):02d}:{start_m}-{int(end_h):02d}:{end_m}"
    except (AttributeError, ValueError):
        return None
    return canonical if canonical in TIME_SLOTS else None


def period_of(slot: str) -> str:
    if slot in MORNING_SLOTS:
        return "morning"
    if slot in AFTERNOON_SLOTS:
        return "afternoon"
    raise KeyError(slot)


def block_of(slot: str) -> tuple:
    return PERIOD_SLOTS[period_of(slot)]


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def is_clinical(dentist: str) -> bool:
    return dentist not in NON_CLINICAL_ROLES


def is_restricted(day: date, slot: str, dentist: str) -> bool:
    """True when `dentist` may not take `slot` on `day` because of the weekday rule."""
    if is_clinical(dentist):
        return False
    return day.weekday() in RESTRICTED_WEEKDAYS and slot in RESTRICTED_MORNING_SLOTS


def next_monday(day: date) -> date:
    # used by callers that redirect weekend dates
    if not is_weekend(day):
        return day
    return day + timedelta(days=7 - day.weekday())
