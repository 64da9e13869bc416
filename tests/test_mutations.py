from datetime import date, datetime
from uuid import uuid4

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.scheduling import (
    BreakKind,
    Holiday,
    RecurringBreak,
    Schedule,
    TimeInterval,
    VacationStatus,
    Weekday,
    add_break,
    add_holiday,
    is_slot_available,
    request_vacation,
    resolve_vacation,
    set_active,
    set_working_hours,
)

MONDAY = date(2024, 6, 10)

@pytest.fixture
def schedule():
    return Schedule(
        doctor_id=uuid4(),
        working_hours={Weekday.MONDAY: TimeInterval(start="08:00", end="12:00")},
    )

def test_set_working_hours_replaces_the_day(schedule):
    set_working_hours(schedule, Weekday.MONDAY, TimeInterval(start="13:00", end="17:00"))

    assert schedule.working_hours[Weekday.MONDAY].label() == "13:00-17:00"
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is False
    assert is_slot_available(schedule, MONDAY, "14:00", "14:30") is True

def test_clearing_working_hours_closes_the_day(schedule):
    set_working_hours(schedule, Weekday.MONDAY, None)

    assert Weekday.MONDAY not in schedule.working_hours
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is False
    # Clearing a day that has no hours is a no-op
    set_working_hours(schedule, Weekday.SUNDAY, None)

def test_add_break_inside_working_hours(schedule):
    add_break(schedule, RecurringBreak(day=Weekday.MONDAY, start="10:00", end="10:30", kind=BreakKind.LUNCH))

    assert len(schedule.breaks) == 1
    assert schedule.breaks[0].kind == BreakKind.LUNCH

def test_break_defaults_to_break_kind():
    assert RecurringBreak(day=Weekday.MONDAY, start="10:00", end="10:30").kind == BreakKind.BREAK

def test_break_outside_working_hours_is_rejected(schedule):
    with pytest.raises(ValidationError):
        add_break(schedule, RecurringBreak(day=Weekday.MONDAY, start="11:30", end="12:30"))
    assert schedule.breaks == []

def test_break_on_a_day_off_is_rejected(schedule):
    with pytest.raises(ValidationError):
        add_break(schedule, RecurringBreak(day=Weekday.TUESDAY, start="10:00", end="10:30"))

def test_break_outside_working_hours_can_be_allowed(schedule):
    add_break(
        schedule,
        RecurringBreak(day=Weekday.TUESDAY, start="10:00", end="10:30"),
        allow_outside_working_hours=True,
    )

    assert len(schedule.breaks) == 1

def test_malformed_break_is_rejected():
    with pytest.raises(ValidationError):
        RecurringBreak(day=Weekday.MONDAY, start="10:30", end="10:00")

def test_add_holiday(schedule):
    add_holiday(schedule, Holiday(date=MONDAY, reason="Closed"))

    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is False

def test_duplicate_holiday_is_a_conflict(schedule):
    add_holiday(schedule, Holiday(date=MONDAY, reason="Closed"))

    with pytest.raises(ConflictError):
        add_holiday(schedule, Holiday(date=MONDAY, reason="Closed again"))
    # Same date as a yearly holiday is a different entry
    add_holiday(schedule, Holiday(date=MONDAY, reason="Yearly", is_recurring=True))
    assert len(schedule.holidays) == 2

def test_request_vacation_starts_pending(schedule):
    vacation = request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")

    assert vacation.status == VacationStatus.PENDING
    assert schedule.find_vacation(vacation.id) is vacation
    # Pending vacations do not close the calendar
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is True

def test_overlapping_vacation_requests_conflict(schedule):
    request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")

    with pytest.raises(ConflictError):
        request_vacation(schedule, date(2024, 6, 14), date(2024, 6, 20), "Holiday")

def test_rejected_vacation_frees_its_range(schedule):
    first = request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")
    resolve_vacation(schedule, first.id, VacationStatus.REJECTED, uuid4(), datetime(2024, 6, 1, 9, 0))

    second = request_vacation(schedule, date(2024, 6, 12), date(2024, 6, 13), "Shorter")

    assert second.status == VacationStatus.PENDING

def test_reversed_vacation_range_is_rejected(schedule):
    with pytest.raises(ValidationError):
        request_vacation(schedule, date(2024, 6, 14), date(2024, 6, 10), "Backwards")
    assert schedule.vacations == []

def test_approving_a_vacation_blocks_the_range(schedule):
    vacation = request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")
    admin_id = uuid4()
    resolved_at = datetime(2024, 6, 1, 9, 0)

    resolved = resolve_vacation(schedule, vacation.id, "approved", admin_id, resolved_at)

    assert resolved.status == VacationStatus.APPROVED
    assert resolved.approved_by == admin_id
    assert resolved.approval_date == resolved_at
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is False

def test_resolving_twice_is_a_conflict(schedule):
    vacation = request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")
    resolve_vacation(schedule, vacation.id, VacationStatus.APPROVED, uuid4(), datetime(2024, 6, 1))

    with pytest.raises(ConflictError):
        resolve_vacation(schedule, vacation.id, VacationStatus.APPROVED, uuid4(), datetime(2024, 6, 2))
    with pytest.raises(ConflictError):
        resolve_vacation(schedule, vacation.id, VacationStatus.REJECTED, uuid4(), datetime(2024, 6, 2))
    assert vacation.status == VacationStatus.APPROVED

def test_resolving_unknown_vacation_is_not_found(schedule):
    with pytest.raises(NotFoundError):
        resolve_vacation(schedule, uuid4(), VacationStatus.APPROVED, uuid4(), datetime(2024, 6, 1))

@pytest.mark.parametrize("status", ["pending", "cancelled"])
def test_resolving_to_a_non_final_status_is_invalid(schedule, status):
    vacation = request_vacation(schedule, date(2024, 6, 10), date(2024, 6, 14), "Conference")

    with pytest.raises(ValidationError):
        resolve_vacation(schedule, vacation.id, status, uuid4(), datetime(2024, 6, 1))
    assert vacation.status == VacationStatus.PENDING

def test_deactivating_and_reactivating(schedule):
    set_active(schedule, False)
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is False

    set_active(schedule, True)
    assert is_slot_available(schedule, MONDAY, "09:00", "09:30") is True
