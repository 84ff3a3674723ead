# clinic_calendar/repository.py

import logging
import threading
import uuid
from datetime import date, timedelta
from typing import Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from clinic_calendar import core
from clinic_calendar.data import DEFAULT_DENTISTS, TIME_SLOTS, normalize_slot
from clinic_calendar.errors import (
    AvailabilityError,
    InvalidSlotError,
    NotFoundError,
    PartialWriteError,
)
from clinic_calendar.models import AppointmentSlot, Dentist, LeaveRecord, MeetingRecord

logger = logging.getLogger(__name__)

BUSINESS_FIELDS = ("dentist", "patient", "phone", "treatment", "duration", "status")

# check-then-write on one date is serialized inside this process; the
# (date, slot) unique constraint covers writers in other processes
_locks_guard = threading.Lock()
_date_locks: Dict[date, threading.Lock] = {}


def date_lock(day: date) -> threading.Lock:
    with _locks_guard:
        return _date_locks.setdefault(day, threading.Lock())


def drop_date_locks(before: date) -> int:
    # past dates take no more writes once swept
    with _locks_guard:
        stale = [day for day in _date_locks if day < before]
        for day in stale:
            del _date_locks[day]
    return len(stale)


def copy_to_dict(row: AppointmentSlot) -> dict:
    return {
        "id": row.appointment_id,
        "date": row.date,
        "slot": row.slot,
        "dentist": row.dentist,
        "patient": row.patient,
        "phone": row.phone,
        "treatment": row.treatment,
        "duration": row.duration,
        "status": row.status,
    }


class BookingRepository:
    """Slot-indexed appointment store plus the leave, meeting and dentist registries.

    Every public method works on the caller's session and commits its own
    changes; nothing is cached between calls.
    """

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _copies_on(self, day: date) -> List[AppointmentSlot]:
        return self.session.exec(
            select(AppointmentSlot)
            .where(AppointmentSlot.date == day)
            .order_by(AppointmentSlot.id)
        ).all()

    def load_day(self, day: date) -> core.DaySnapshot:
        occupancy: Dict[str, int] = {}
        for row in self._copies_on(day):
            occupancy[row.slot] = occupancy.get(row.slot, 0) + 1

        return core.DaySnapshot(
            day=day,
            occupancy=occupancy,
            leave=[r.dentist for r in self.list_leave(day)],
            meetings=[(m.dentist, m.period) for m in self.list_meetings(day)],
        )

    def day_view(self, day: date) -> dict:
        grouped: Dict[str, List[dict]] = {}
        for row in self._copies_on(day):
            grouped.setdefault(row.slot, []).append(copy_to_dict(row))

        return {
            "date": day,
            "appointments": grouped,
            "leave": [r.dentist for r in self.list_leave(day)],
            "meetings": self.list_meetings(day),
        }

    def find_available_slots(
        self,
        day: date,
        duration: str,
        dentist: str,
        explicit_slot: Optional[str] = None,
        period: Optional[str] = None,
    ) -> List[str]:
        return core.find_available_slots(
            self.load_day(day), duration, dentist, explicit_slot, period
        )

    def iter_open_slots(
        self,
        start: date,
        duration: str,
        dentist: str,
        period: Optional[str] = None,
        horizon_days: int = 60,
    ) -> Iterator[Tuple[date, str]]:
        return core.iter_open_slots(
            self.load_day, start, duration, dentist, period, horizon_days
        )

    def find_next_opening(
        self,
        start: date,
        duration: str,
        dentist: str,
        period: Optional[str] = None,
        horizon_days: int = 60,
    ) -> Optional[Tuple[date, str]]:
        return next(self.iter_open_slots(start, duration, dentist, period, horizon_days), None)

    # ------------------------------------------------------------------
    # Booking writes
    # ------------------------------------------------------------------

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except IntegrityError as exc:
            self._rollback(action)
            logger.warning(f"{action}: slot already taken ({exc.orig})")
            raise AvailabilityError(f"{action}: slot already taken", reason="occupied") from exc
        except SQLAlchemyError:
            self._rollback(action)
            raise

    def _rollback(self, action: str) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            logger.error(f"{action}: rollback failed: {exc}")
            raise PartialWriteError(f"{action} could not be rolled back") from exc

    def create_booking(self, day: date, start_slot: str, appointment: dict) -> dict:
        """Reserve every slot of the booking in one transaction.

        Availability is re-checked against the current store; a stale
        result from an earlier availability query is never trusted.
        """
        slot = normalize_slot(start_slot)
        if slot is None:
            raise InvalidSlotError(f"Unknown time slot: {start_slot!r}")

        fields = {
            "dentist": appointment["dentist"],
            "patient": appointment["patient"],
            "phone": appointment.get("phone") or "",
            "treatment": appointment.get("treatment") or "",
            "duration": appointment.get("duration") or "30min",
            "status": appointment.get("status") or "pending",
        }

        with date_lock(day):
            # 1) Re-check against the store as it is now
            related = core.check_available(
                self.load_day(day), slot, fields["duration"], fields["dentist"]
            )

            # 2) One copy per related slot, same id
            appointment_id = str(uuid.uuid4())
            for related_slot in related:
                self.session.add(
                    AppointmentSlot(
                        appointment_id=appointment_id,
                        date=day,
                        slot=related_slot,
                        **fields,
                    )
                )

            # 3) All or nothing
            self._commit("create booking")

        logger.info(
            f"Booked {appointment_id} for {fields['dentist']} on {day} {related}"
        )
        return {
            "id": appointment_id,
            "date": day,
            "slot": slot,
            "slots": related,
            "appointment": fields,
        }

    def _booking_copies(
        self, day: date, start_slot: str, original: dict
    ) -> List[AppointmentSlot]:
        """Every stored copy of the booking that starts at `start_slot`.

        The booking is located by identity at its start slot; its extent
        comes from the stored duration, never from the caller's.
        """
        slot = normalize_slot(start_slot)
        if slot is None:
            raise InvalidSlotError(f"Unknown time slot: {start_slot!r}")

        anchor = self.session.exec(
            select(AppointmentSlot)
            .where(AppointmentSlot.date == day)
            .where(AppointmentSlot.slot == slot)
        ).first()
        if anchor is None or not core.same_appointment(anchor, original):
            raise NotFoundError(f"No booking of {original.get('patient')} at {slot} on {day}")

        sent_duration = original.get("duration")
        if sent_duration and sent_duration != anchor.duration:
            logger.info(
                f"Booking {anchor.appointment_id} is {anchor.duration}, caller sent {sent_duration}"
            )

        copies = self.session.exec(
            select(AppointmentSlot)
            .where(AppointmentSlot.date == day)
            .where(AppointmentSlot.appointment_id == anchor.appointment_id)
        ).all()
        copies = sorted(copies, key=lambda row: TIME_SLOTS.index(row.slot))

        # 1) Must be addressed from its first slot
        if copies[0].slot != slot:
            raise NotFoundError(
                f"Booking of {original.get('patient')} on {day} starts at {copies[0].slot}, not {slot}"
            )

        # 2) Must be stored in exactly the slots its duration covers
        expected = core.related_slots(slot, anchor.duration)
        if [row.slot for row in copies] != expected:
            logger.error(
                f"Booking {anchor.appointment_id} on {day} stored in "
                f"{[row.slot for row in copies]}, expected {expected}"
            )
            raise InvalidSlotError(
                f"Booking of {original.get('patient')} on {day} is not stored in all of {expected}"
            )
        return copies

    def update_booking(
        self, day: date, start_slot: str, original: dict, new_fields: dict
    ) -> List[dict]:
        """Overwrite every copy of `original`; the copies keep their id.

        Only the fields present in `new_fields` change. A duration change
        lays the booking out again from its start slot inside the same
        transaction.
        """
        changes = {k: new_fields[k] for k in BUSINESS_FIELDS if new_fields.get(k) is not None}

        with date_lock(day):
            copies = self._booking_copies(day, start_slot, original)

            new_duration = changes.get("duration", copies[0].duration)
            if new_duration != copies[0].duration:
                updated = self._relayout(day, copies[0].slot, copies, changes, new_duration)
            else:
                updated = []
                for row in copies:
                    for key, value in changes.items():
                        setattr(row, key, value)
                    self.session.add(row)
                    updated.append(row)

            self._commit("update booking")
            result = [copy_to_dict(row) for row in updated]

        logger.info(f"Updated booking {result[0]['id']} on {day} ({len(result)} slots)")
        return result

    def _relayout(
        self,
        day: date,
        start_slot: str,
        copies: List[AppointmentSlot],
        changes: dict,
        new_duration: str,
    ) -> List[AppointmentSlot]:
        # the booking's own copies no longer count as occupying their slots
        snapshot = self.load_day(day)
        for row in copies:
            snapshot.occupancy[row.slot] -= 1

        merged = {key: getattr(copies[0], key) for key in BUSINESS_FIELDS}
        merged.update(changes)

        related = core.check_available(snapshot, start_slot, new_duration, merged["dentist"])

        appointment_id = copies[0].appointment_id
        for row in copies:
            self.session.delete(row)
        # deletes must reach the database before the new copies take the slots
        self.session.flush()

        new_rows = [
            AppointmentSlot(appointment_id=appointment_id, date=day, slot=slot, **merged)
            for slot in related
        ]
        self.session.add_all(new_rows)
        return new_rows

    def cancel_booking(self, day: date, start_slot: str, appointment: dict) -> List[dict]:
        """Remove every copy of `appointment`; returns the removed copies."""
        with date_lock(day):
            copies = self._booking_copies(day, start_slot, appointment)

            removed = [copy_to_dict(row) for row in copies]
            for row in copies:
                self.session.delete(row)
            self._commit("cancel booking")

        logger.info(f"Cancelled booking {removed[0]['id']} on {day} ({len(removed)} slots)")
        return removed

    # ------------------------------------------------------------------
    # Leave / meetings
    # ------------------------------------------------------------------

    def list_leave(self, day: Optional[date] = None) -> List[LeaveRecord]:
        stmt = select(LeaveRecord)
        if day is not None:
            stmt = stmt.where(LeaveRecord.date == day)
        return self.session.exec(stmt.order_by(LeaveRecord.date, LeaveRecord.id)).all()

    def record_leave(self, day: date, dentist: str) -> LeaveRecord:
        existing = self.session.exec(
            select(LeaveRecord)
            .where(LeaveRecord.date == day)
            .where(LeaveRecord.dentist == dentist)
        ).first()
        if existing is not None:
            return existing

        record = LeaveRecord(date=day, dentist=dentist)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Leave recorded: {dentist} on {day}")
        return record

    def remove_leave(self, day: date, dentist: str) -> None:
        record = self.session.exec(
            select(LeaveRecord)
            .where(LeaveRecord.date == day)
            .where(LeaveRecord.dentist == dentist)
        ).first()
        if record is None:
            raise NotFoundError(f"No leave for {dentist} on {day}")

        self.session.delete(record)
        self.session.commit()
        logger.info(f"Leave removed: {dentist} on {day}")

    def list_meetings(self, day: Optional[date] = None) -> List[MeetingRecord]:
        stmt = select(MeetingRecord)
        if day is not None:
            stmt = stmt.where(MeetingRecord.date == day)
        return self.session.exec(stmt.order_by(MeetingRecord.date, MeetingRecord.id)).all()

    def record_meeting(self, day: date, dentist: str, period: str) -> MeetingRecord:
        record = MeetingRecord(date=day, dentist=dentist, period=period)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        logger.info(f"Meeting recorded: {dentist} on {day} ({period})")
        return record

    def remove_meeting(self, day: date, dentist: str, index: int) -> None:
        # index is the position in the date's meeting list, oldest first
        meetings = self.list_meetings(day)
        if index < 0 or index >= len(meetings) or meetings[index].dentist != dentist:
            raise NotFoundError(f"No meeting #{index} for {dentist} on {day}")

        self.session.delete(meetings[index])
        self.session.commit()
        logger.info(f"Meeting removed: {dentist} on {day} (#{index})")

    # ------------------------------------------------------------------
    # Dentist registry
    # ------------------------------------------------------------------

    def list_dentists(self) -> Dict[str, str]:
        rows = self.session.exec(
            select(Dentist).where(Dentist.active == True).order_by(Dentist.name)  # noqa: E712
        ).all()
        return {row.name: row.color for row in rows}

    def upsert_dentist(self, name: str, color: str) -> Dentist:
        dentist = self.session.get(Dentist, name)
        if dentist is None:
            dentist = Dentist(name=name, color=color)
        else:
            dentist.color = color
            dentist.active = True
        self.session.add(dentist)
        self.session.commit()
        self.session.refresh(dentist)
        return dentist

    def remove_dentist(self, name: str) -> None:
        dentist = self.session.get(Dentist, name)
        if dentist is None or not dentist.active:
            raise NotFoundError(f"Dentist {name} not found")

        # soft delete: old appointments keep referring to the key
        dentist.active = False
        self.session.add(dentist)
        self.session.commit()

    def seed_dentists(self) -> int:
        if self.session.exec(select(Dentist)).first() is not None:
            return 0
        for name, color in DEFAULT_DENTISTS.items():
            self.session.add(Dentist(name=name, color=color))
        self.session.commit()
        logger.info(f"Seeded {len(DEFAULT_DENTISTS)} dentists")
        return len(DEFAULT_DENTISTS)

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def sweep_older_than(self, cutoff: date) -> dict:
        """Delete appointment copies, leave and meetings dated before `cutoff`.

        A record that fails to delete is logged and skipped; the sweep goes on.
        """
        deleted: Dict[str, int] = {}
        failed: Dict[str, int] = {}

        for name, model in (
            ("appointments", AppointmentSlot),
            ("leave", LeaveRecord),
            ("meetings", MeetingRecord),
        ):
            deleted[name] = 0
            failed[name] = 0
            rows = self.session.exec(select(model).where(model.date < cutoff)).all()
            for row in rows:
                try:
                    self.session.delete(row)
                    self.session.commit()
                    deleted[name] += 1
                except SQLAlchemyError as exc:
                    self.session.rollback()
                    failed[name] += 1
                    logger.error(f"Sweep could not delete {name} record {row.id}: {exc}")

        drop_date_locks(cutoff)
        logger.info(f"Sweep before {cutoff}: deleted {deleted}, failed {failed}")
        return {"cutoff": cutoff, "deleted": deleted, "failed": failed}

    def sweep_expired(self, retention_days: int, today: Optional[date] = None) -> dict:
        today = today or date.today()
        return self.sweep_older_than(today - timedelta(days=retention_days))
