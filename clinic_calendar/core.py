# clinic_calendar/core.py
"""
Slot expansion and availability rules.

Everything here is pure: callers load a DaySnapshot from the store and
pass it in, so the same rules serve the booking writes, the availability
endpoint and the next-opening search.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from clinic_calendar.data import (
    ALL_STAFF_LEAVE,
    DURATION_SLOTS,
    PERIOD_SLOTS,
    block_of,
    is_clinical,
    is_restricted,
    is_weekend,
    normalize_slot,
    period_of,
)
from clinic_calendar.errors import AvailabilityError, InvalidSlotError

IDENTITY_FIELDS = ("dentist", "patient", "phone", "treatment")


@dataclass
class DaySnapshot:
    """What the availability rules need to know about one date."""

    day: date
    # slot label -> number of stored appointment copies, any dentist
    occupancy: Dict[str, int] = field(default_factory=dict)
    leave: List[str] = field(default_factory=list)
    # (dentist, period) pairs
    meetings: List[Tuple[str, str]] = field(default_factory=list)

    def is_occupied(self, slot: str) -> bool:
        return self.occupancy.get(slot, 0) > 0


def related_slots(start_slot: str, duration: str) -> List[str]:
    """Atomic slots occupied by a booking of `duration` starting at `start_slot`.

    Raises InvalidSlotError when the booking would not fit inside the
    half-day block of `start_slot`.
    """
    slot = normalize_slot(start_slot) if isinstance(start_slot, str) else None
    if slot is None:
        raise InvalidSlotError(f"Unknown time slot: {start_slot!r}")
    if duration not in DURATION_SLOTS:
        raise InvalidSlotError(f"Unknown duration: {duration!r}")

    slots_needed = DURATION_SLOTS[duration]
    block = block_of(slot)
    index = block.index(slot)

    # 2 hours is the whole block, so it can only start at the block's first slot
    if index + slots_needed > len(block):
        raise InvalidSlotError(
            f"A {duration} booking does not fit from {slot} before the end of the {period_of(slot)}"
        )

    return list(block[index:index + slots_needed])


def same_appointment(stored, target) -> bool:
    """Identity used to find the copies of one booking: dentist, patient, phone, treatment.

    The id is deliberately not part of it; two bookings with the same four
    fields in the same slots are treated as the same booking.
    """
    return all(_field(stored, name) == _field(target, name) for name in IDENTITY_FIELDS)


def _field(obj, name):
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _requested_periods(period: Optional[str]) -> Tuple[str, ...]:
    if period in (None, "", "all"):
        return ("morning", "afternoon")
    if period not in PERIOD_SLOTS:
        raise InvalidSlotError(f"Unknown period: {period!r}")
    return (period,)


def _evaluate(
    day: DaySnapshot,
    duration: str,
    dentist: str,
    explicit_slot: Optional[str],
    period: Optional[str],
) -> Tuple[List[str], Optional[str]]:
    # 1) Weekends are never bookable
    if is_weekend(day.day):
        return [], "weekend"

    # 2) Full-day leave, for this dentist or for the whole clinic
    if dentist in day.leave or ALL_STAFF_LEAVE in day.leave:
        return [], "leave"

    requested = _requested_periods(period)
    if duration not in DURATION_SLOTS:
        raise InvalidSlotError(f"Unknown duration: {duration!r}")

    # 3) Meetings take out a half-day; general/staff bookings ignore them
    blocked = set()
    if is_clinical(dentist):
        blocked = {p for who, p in day.meetings if who == dentist}
    open_periods = [p for p in requested if p not in blocked]
    if not open_periods:
        return [], "meeting"

    # 4) Candidate slots after the weekday restriction
    candidates = [
        slot
        for p in open_periods
        for slot in PERIOD_SLOTS[p]
        if not is_restricted(day.day, slot, dentist)
    ]

    # 5) Explicit slot: every related slot must be empty
    if explicit_slot is not None:
        slot = normalize_slot(explicit_slot)
        related = related_slots(explicit_slot, duration)
        if slot not in candidates:
            if is_restricted(day.day, slot, dentist):
                return [], "restricted"
            if period_of(slot) in blocked:
                return [], "meeting"
            return [], "period"
        if any(day.is_occupied(s) for s in related):
            return [], "occupied"
        return [slot], None

    # 6) Every candidate whose expansion fits and is free
    available = []
    for slot in candidates:
        try:
            related = related_slots(slot, duration)
        except InvalidSlotError:
            continue
        if not any(day.is_occupied(s) for s in related):
            available.append(slot)

    return available, None if available else "occupied"


def find_available_slots(
    day: DaySnapshot,
    duration: str,
    dentist: str,
    explicit_slot: Optional[str] = None,
    period: Optional[str] = None,
) -> List[str]:
    """Legal starting slots for `dentist` on `day.day`, chronological.

    With `explicit_slot` the answer is `[explicit_slot]` or `[]`. A slot
    counts as taken when it holds an appointment of any dentist.
    """
    slots, _ = _evaluate(day, duration, dentist, explicit_slot, period)
    return slots


def check_available(
    day: DaySnapshot,
    start_slot: str,
    duration: str,
    dentist: str,
    period: Optional[str] = None,
) -> List[str]:
    """Raise AvailabilityError unless `start_slot` is bookable; return its related slots."""
    slots, reason = _evaluate(day, duration, dentist, start_slot, period)
    if not slots:
        raise AvailabilityError(
            f"{start_slot} on {day.day.isoformat()} is not available for {dentist} ({reason})",
            reason=reason,
        )
    return related_slots(slots[0], duration)


def iter_open_slots(
    load_day: Callable[[date], DaySnapshot],
    start: date,
    duration: str,
    dentist: str,
    period: Optional[str] = None,
    horizon_days: int = 60,
) -> Iterator[Tuple[date, str]]:
    """Yield (date, slot) openings day by day, for at most `horizon_days` days from `start`."""
    for offset in range(horizon_days):
        current = start + timedelta(days=offset)
        if is_weekend(current):
            continue
        for slot in find_available_slots(load_day(current), duration, dentist, period=period):
            yield current, slot


def find_next_opening(
    load_day: Callable[[date], DaySnapshot],
    start: date,
    duration: str,
    dentist: str,
    period: Optional[str] = None,
    horizon_days: int = 60,
) -> Optional[Tuple[date, str]]:
    return next(
        iter_open_slots(load_day, start, duration, dentist, period, horizon_days),
        None,
    )
