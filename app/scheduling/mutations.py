"""
Structural edits to a schedule snapshot.

Each function validates before it changes anything, so a raised error leaves
the snapshot untouched.
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.scheduling.models import (
    Holiday,
    RecurringBreak,
    Schedule,
    TimeInterval,
    Vacation,
    VacationStatus,
    Weekday,
)
from app.scheduling.timeutils import contains

RESOLVED_STATUSES = (VacationStatus.APPROVED, VacationStatus.REJECTED)


def set_working_hours(schedule: Schedule, day: Weekday, hours: Optional[TimeInterval]) -> None:
    """Replace the hours for `day`; None means the doctor does not work that day."""
    if hours is None:
        schedule.working_hours.pop(day, None)
        return
    schedule.working_hours[day] = hours


def add_break(
    schedule: Schedule,
    brk: RecurringBreak,
    allow_outside_working_hours: bool = False,
) -> None:
    if not allow_outside_working_hours:
        hours = schedule.hours_for(brk.day)
        if hours is None:
            raise ValidationError(f"No working hours on {brk.day.value}, cannot add a break")
        if not contains(hours.start, hours.end, brk.start, brk.end):
            raise ValidationError(
                f"Break {brk.label()} falls outside working hours {hours.label()} on {brk.day.value}"
            )
    schedule.breaks.append(brk)


def add_holiday(schedule: Schedule, holiday: Holiday) -> None:
    for existing in schedule.holidays:
        if existing.date == holiday.date and existing.is_recurring == holiday.is_recurring:
            raise ConflictError(f"A holiday is already declared on {holiday.date}")
    schedule.holidays.append(holiday)


def request_vacation(schedule: Schedule, start_date: date, end_date: date, reason: str) -> Vacation:
    vacation = Vacation(start_date=start_date, end_date=end_date, reason=reason)

    for existing in schedule.vacations:
        if existing.status != VacationStatus.REJECTED and existing.overlaps(start_date, end_date):
            raise ConflictError(
                f"Vacation overlaps an existing {existing.status.value} vacation "
                f"({existing.start_date} to {existing.end_date})"
            )

    schedule.vacations.append(vacation)
    return vacation


def resolve_vacation(
    schedule: Schedule,
    vacation_id: UUID,
    status: VacationStatus,
    resolved_by: UUID,
    resolved_at: datetime,
) -> Vacation:
    """pending -> approved | rejected, exactly once."""
    try:
        status = VacationStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown vacation status {status!r}")
    if status not in RESOLVED_STATUSES:
        raise ValidationError(f"Vacation can only be approved or rejected, got {status.value}")

    vacation = schedule.find_vacation(vacation_id)
    if vacation is None:
        raise NotFoundError("Vacation request not found")

    if vacation.is_resolved:
        raise ConflictError(f"Vacation request was already {vacation.status.value}")

    vacation.status = status
    vacation.approved_by = resolved_by
    vacation.approval_date = resolved_at
    return vacation


def set_active(schedule: Schedule, is_active: bool) -> None:
    schedule.is_active = is_active
