# clinic_calendar/models.py

from typing import Optional
from datetime import date as Date

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

class AppointmentSlot(SQLModel, table=True):
    # One row per atomic slot a booking occupies; all rows of a booking
    # share appointment_id and the business fields.
    __tablename__ = "appointment_slots"
    __table_args__ = (
        UniqueConstraint("date", "slot", name="uq_date_slot"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    appointment_id: str = Field(index=True)
    date: Date = Field(index=True)
    slot: str
    dentist: str = Field(index=True)
    patient: str
    phone: str = ""
    treatment: str = ""
    duration: str = "30min"
    status: str = "pending"

class LeaveRecord(SQLModel, table=True):
    __tablename__ = "leave_records"
    __table_args__ = (
        UniqueConstraint("date", "dentist", name="uq_leave_date_dentist"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    date: Date = Field(index=True)
    dentist: str

class MeetingRecord(SQLModel, table=True):
    __tablename__ = "meeting_records"

    id: Optional[int] = Field(default=None, primary_key=True)

    date: Date = Field(index=True)
    dentist: str
    period: str  # "morning" or "afternoon"

class Dentist(SQLModel, table=True):
    __tablename__ = "dentists"

    name: str = Field(primary_key=True)
    color: str
    active: bool = True
