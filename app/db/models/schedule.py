from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint
from typing import Optional
from datetime import date, datetime, time
from uuid import UUID, uuid4

from app.core.utils import utcnow

class DoctorSchedule(SQLModel, table=True):
    """
    Root row of a doctor's schedule. `version` is bumped by every mutation
    and compared on write, so concurrent edits of one schedule cannot both commit.
    """
    __tablename__ = "doctor_schedules"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    doctor_id: UUID = Field(foreign_key="doctors.id", unique=True, index=True)
    is_active: bool = Field(default=True)
    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class WorkingHours(SQLModel, table=True):
    __tablename__ = "working_hours"
    __table_args__ = (UniqueConstraint("schedule_id", "day_of_week"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    schedule_id: UUID = Field(foreign_key="doctor_schedules.id", index=True)
    day_of_week: str # monday..sunday
    start_time: time
    end_time: time

class ScheduleBreak(SQLModel, table=True):
    __tablename__ = "schedule_breaks"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    schedule_id: UUID = Field(foreign_key="doctor_schedules.id", index=True)
    day_of_week: str
    start_time: time
    end_time: time
    kind: str = Field(default="break") # lunch, break, other
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class Holiday(SQLModel, table=True):
    __tablename__ = "holidays"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    schedule_id: UUID = Field(foreign_key="doctor_schedules.id", index=True)
    date: date
    reason: str
    is_recurring: bool = Field(default=False)

class Vacation(SQLModel, table=True):
    __tablename__ = "vacations"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    schedule_id: UUID = Field(foreign_key="doctor_schedules.id", index=True)
    start_date: date
    end_date: date
    reason: str
    status: str = Field(default="pending") # pending, approved, rejected
    approved_by: Optional[UUID] = Field(default=None, foreign_key="users.id")
    approval_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
