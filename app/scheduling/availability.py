"""
Availability checks over a schedule snapshot.

Nothing here touches the database: the service layer loads a `Schedule`,
asks these functions, and persists whatever it decides. An unavailable slot
is a normal `False` result; exceptions are reserved for malformed input.
"""
from datetime import date
from typing import Any, Awaitable, Callable, List, Sequence, Union
from uuid import UUID

from app.core.exceptions import ValidationError
from app.scheduling.models import Schedule, TimeInterval, Weekday
from app.scheduling.timeutils import TimeLike, contains, overlaps, to_minutes

DEFAULT_SLOT_MINUTES = 30

# Appointment statuses that keep a doctor busy
ACTIVE_APPOINTMENT_STATUSES = ("pending", "confirmed")

# Returns the matching appointments, or just how many there are
AppointmentLookup = Callable[[UUID, date, date, Sequence[str]], Awaitable[Union[int, Sequence[Any]]]]


def is_day_blocked(schedule: Schedule, day: date) -> bool:
    """Whole-day closures: inactive schedule, holiday, approved vacation."""
    if not schedule.is_active:
        return True
    if any(holiday.matches(day) for holiday in schedule.holidays):
        return True
    return any(v.blocks_bookings and v.covers(day) for v in schedule.vacations)


def _hits_break(schedule: Schedule, weekday: Weekday, start: int, end: int) -> bool:
    return any(
        overlaps(start, end, brk.start, brk.end)
        for brk in schedule.breaks_for(weekday)
    )


def is_slot_available(schedule: Schedule, day: date, start: TimeLike, end: TimeLike) -> bool:
    start_minute = to_minutes(start)
    end_minute = to_minutes(end)
    if start_minute >= end_minute:
        raise ValidationError(f"Slot start {start!r} must be before end {end!r}")

    if is_day_blocked(schedule, day):
        return False

    weekday = Weekday.of(day)
    hours = schedule.hours_for(weekday)
    if hours is None:
        return False

    if not contains(hours.start, hours.end, start_minute, end_minute):
        return False

    return not _hits_break(schedule, weekday, start_minute, end_minute)


def day_availability(
    schedule: Schedule,
    day: date,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[TimeInterval]:
    """
    Fixed-length slots for `day`, in order.

    Slots start at the beginning of working hours and advance by
    `slot_minutes`; a slot touching a break is skipped and a trailing slot
    shorter than `slot_minutes` is dropped.
    """
    if isinstance(slot_minutes, bool) or not isinstance(slot_minutes, int) or slot_minutes <= 0:
        raise ValidationError(f"Slot length must be a positive number of minutes, got {slot_minutes!r}")

    if is_day_blocked(schedule, day):
        return []

    weekday = Weekday.of(day)
    hours = schedule.hours_for(weekday)
    if hours is None:
        return []

    slots = []
    current = hours.start
    while current + slot_minutes <= hours.end:
        slot_end = current + slot_minutes
        if not _hits_break(schedule, weekday, current, slot_end):
            slots.append(TimeInterval(start=current, end=slot_end))
        current = slot_end

    return slots


async def can_request_vacation(
    doctor_id: UUID,
    start_date: date,
    end_date: date,
    appointment_lookup: AppointmentLookup,
) -> bool:
    """
    False when the doctor has pending or confirmed appointments dated within
    [start_date, end_date]. `appointment_lookup` is the only storage access.
    """
    if end_date < start_date:
        raise ValidationError(f"Vacation end date {end_date} is before start date {start_date}")

    found = await appointment_lookup(
        doctor_id, start_date, end_date, ACTIVE_APPOINTMENT_STATUSES
    )
    count = found if isinstance(found, int) else len(found)
    return count == 0
