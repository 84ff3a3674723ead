# clinic_calendar/schemas.py

from pydantic import BaseModel, Field
from enum import Enum
from datetime import date as Date
from typing import Dict, List, Optional

class Duration(str, Enum):
    thirty_min = "30min"
    one_hour = "1hour"
    two_hours = "2hours"

class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"

class Period(str, Enum):
    morning = "morning"
    afternoon = "afternoon"

class PeriodFilter(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    all = "all"

class AppointmentFields(BaseModel):
    dentist: str = Field(min_length=1)
    patient: str = Field(min_length=1)
    phone: str = ""
    treatment: str = ""
    duration: Duration = Duration.thirty_min
    status: AppointmentStatus = AppointmentStatus.pending

class AppointmentIdentity(BaseModel):
    # the fields that locate a stored booking; see core.same_appointment
    dentist: str
    patient: str
    phone: str = ""
    treatment: str = ""
    duration: Duration

class AppointmentChanges(BaseModel):
    # fields left out keep their stored value
    dentist: Optional[str] = Field(default=None, min_length=1)
    patient: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    treatment: Optional[str] = None
    duration: Optional[Duration] = None
    status: Optional[AppointmentStatus] = None

class AppointmentPublic(BaseModel):
    id: str
    date: Date
    slot: str
    dentist: str
    patient: str
    phone: str
    treatment: str
    duration: Duration
    status: AppointmentStatus

class BookingCreate(BaseModel):
    date: Date
    slot: str
    appointment: AppointmentFields

class CreatedBooking(BaseModel):
    id: str
    date: Date
    slot: str
    slots: List[str]
    appointment: AppointmentFields

class BookingUpdate(BaseModel):
    date: Date
    slot: str
    original: AppointmentIdentity
    changes: AppointmentChanges

class BookingCancel(BaseModel):
    date: Date
    slot: str
    appointment: AppointmentIdentity
    rebook: bool = False

class CancelResult(BaseModel):
    removed: int
    rebooked: Optional[CreatedBooking] = None

class LeaveCreate(BaseModel):
    date: Date
    dentist: str = Field(min_length=1)

class LeavePublic(BaseModel):
    id: int
    date: Date
    dentist: str

class MeetingCreate(BaseModel):
    date: Date
    dentist: str = Field(min_length=1)
    period: Period

class MeetingPublic(BaseModel):
    id: int
    date: Date
    dentist: str
    period: Period

class DentistUpsert(BaseModel):
    color: str = Field(pattern=r"^#[0-9A-Fa-f]{6}$")

class DentistPublic(BaseModel):
    name: str
    color: str

class AvailabilityResponse(BaseModel):
    dentist: str
    date: Date
    duration: Duration
    available_slots: List[str]

class NextOpeningResponse(BaseModel):
    dentist: str
    duration: Duration
    found: bool
    date: Optional[Date] = None
    slot: Optional[str] = None

class DayView(BaseModel):
    date: Date
    appointments: Dict[str, List[AppointmentPublic]]
    leave: List[str]
    meetings: List[MeetingPublic]

class GridResponse(BaseModel):
    slots: List[str]
    periods: Dict[str, List[str]]
    durations: Dict[str, int]

class SweepResult(BaseModel):
    cutoff: Date
    deleted: Dict[str, int]
    failed: Dict[str, int]
