from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.exceptions import ValidationError
from app.scheduling.timeutils import format_hhmm, to_minutes


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        # date.weekday(): 0=Monday..6=Sunday, same order as the members
        return list(cls)[day.weekday()]


class BreakKind(str, Enum):
    LUNCH = "lunch"
    BREAK = "break"
    OTHER = "other"


class VacationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TimeInterval(BaseModel):
    """[start, end) in minutes since midnight."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_time(cls, value):
        return to_minutes(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.start >= self.end:
            raise ValidationError(
                f"Interval start {format_hhmm(self.start)} must be before end {format_hhmm(self.end)}"
            )
        return self

    @property
    def duration(self) -> int:
        return self.end - self.start

    def label(self) -> str:
        return f"{format_hhmm(self.start)}-{format_hhmm(self.end)}"


class RecurringBreak(TimeInterval):
    day: Weekday
    kind: BreakKind = BreakKind.BREAK
    reason: Optional[str] = None


class Holiday(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    reason: str
    is_recurring: bool = False

    def matches(self, day: date) -> bool:
        """Recurring holidays repeat on the same month/day every year."""
        if self.is_recurring:
            return (self.date.month, self.date.day) == (day.month, day.day)
        return self.date == day


class Vacation(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    start_date: date
    end_date: date
    reason: str
    status: VacationStatus = VacationStatus.PENDING
    approved_by: Optional[UUID] = None
    approval_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValidationError(
                f"Vacation end date {self.end_date} is before start date {self.start_date}"
            )
        return self

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps(self, start_date: date, end_date: date) -> bool:
        return self.start_date <= end_date and start_date <= self.end_date

    @property
    def is_resolved(self) -> bool:
        return self.status != VacationStatus.PENDING

    @property
    def blocks_bookings(self) -> bool:
        return self.status == VacationStatus.APPROVED


class Schedule(BaseModel):
    """In-memory snapshot of one doctor's schedule."""
    doctor_id: UUID
    working_hours: Dict[Weekday, TimeInterval] = Field(default_factory=dict)
    breaks: List[RecurringBreak] = Field(default_factory=list)
    holidays: List[Holiday] = Field(default_factory=list)
    vacations: List[Vacation] = Field(default_factory=list)
    is_active: bool = True

    def hours_for(self, day: Weekday) -> Optional[TimeInterval]:
        return self.working_hours.get(day)

    def breaks_for(self, day: Weekday) -> List[RecurringBreak]:
        return [b for b in self.breaks if b.day == day]

    def find_vacation(self, vacation_id: UUID) -> Optional[Vacation]:
        for vacation in self.vacations:
            if vacation.id == vacation_id:
                return vacation
        return None

