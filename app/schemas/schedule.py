from pydantic import BaseModel, Field, field_validator
from typing import Annotated, Dict, List, Literal, Optional
from datetime import date, datetime, time
from uuid import UUID

from app.scheduling import BreakKind, Schedule, TimeInterval, VacationStatus, Weekday
from app.scheduling.timeutils import HHMM_PATTERN, format_hhmm

HHMM = Annotated[str, Field(pattern=HHMM_PATTERN, examples=["08:00"])]

class TimeSlot(BaseModel):
    start: HHMM
    end: HHMM

    @field_validator("start", "end", mode="before")
    @classmethod
    def format_time(cls, value):
        if isinstance(value, time):
            return value.strftime("%H:%M")
        return value

    @classmethod
    def from_interval(cls, interval: TimeInterval) -> "TimeSlot":
        return cls(start=format_hhmm(interval.start), end=format_hhmm(interval.end))

    def to_interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

class BreakCreate(TimeSlot):
    day: Weekday
    type: BreakKind = BreakKind.BREAK
    reason: Optional[str] = None

class HolidayCreate(BaseModel):
    date: date
    reason: str = Field(min_length=1)
    is_recurring: bool = False

class VacationCreate(BaseModel):
    start_date: date
    end_date: date
    reason: str = Field(min_length=1)

class VacationResolve(BaseModel):
    status: Literal["approved", "rejected"]

class ScheduleUpsert(BaseModel):
    working_hours: Dict[Weekday, TimeSlot] = {}
    breaks: List[BreakCreate] = []
    holidays: List[HolidayCreate] = []

class ScheduleStatusUpdate(BaseModel):
    is_active: bool

class BreakResponse(TimeSlot):
    day: Weekday
    type: BreakKind
    reason: Optional[str] = None

class VacationResponse(BaseModel):
    id: UUID
    start_date: date
    end_date: date
    reason: str
    status: VacationStatus
    approved_by: Optional[UUID] = None
    approval_date: Optional[datetime] = None

    class Config:
        from_attributes = True

class ScheduleResponse(BaseModel):
    doctor_id: UUID
    is_active: bool
    working_hours: Dict[Weekday, TimeSlot]
    breaks: List[BreakResponse]
    holidays: List[HolidayCreate]
    vacations: List[VacationResponse]

    @classmethod
    def from_snapshot(cls, schedule: Schedule) -> "ScheduleResponse":
        return cls(
            doctor_id=schedule.doctor_id,
            is_active=schedule.is_active,
            working_hours={
                day: TimeSlot.from_interval(hours)
                for day, hours in schedule.working_hours.items()
            },
            breaks=[
                BreakResponse(
                    day=b.day,
                    start=format_hhmm(b.start),
                    end=format_hhmm(b.end),
                    type=b.kind,
                    reason=b.reason,
                )
                for b in schedule.breaks
            ],
            holidays=[
                HolidayCreate(date=h.date, reason=h.reason, is_recurring=h.is_recurring)
                for h in schedule.holidays
            ],
            vacations=[VacationResponse.model_validate(v) for v in schedule.vacations],
        )

class AvailabilityResponse(BaseModel):
    doctor_id: UUID
    date: date
    slot_minutes: int
    slots: List[TimeSlot]

class SlotCheckResponse(BaseModel):
    doctor_id: UUID
    date: date
    start: HHMM
    end: HHMM
    available: bool
