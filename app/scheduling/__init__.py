from .models import (
    BreakKind,
    Holiday,
    RecurringBreak,
    Schedule,
    TimeInterval,
    Vacation,
    VacationStatus,
    Weekday,
)
from .availability import (
    ACTIVE_APPOINTMENT_STATUSES,
    DEFAULT_SLOT_MINUTES,
    can_request_vacation,
    day_availability,
    is_day_blocked,
    is_slot_available,
)
from .mutations import (
    add_break,
    add_holiday,
    request_vacation,
    resolve_vacation,
    set_active,
    set_working_hours,
)

__all__ = [
    "BreakKind",
    "Holiday",
    "RecurringBreak",
    "Schedule",
    "TimeInterval",
    "Vacation",
    "VacationStatus",
    "Weekday",
    "ACTIVE_APPOINTMENT_STATUSES",
    "DEFAULT_SLOT_MINUTES",
    "can_request_vacation",
    "day_availability",
    "is_day_blocked",
    "is_slot_available",
    "add_break",
    "add_holiday",
    "request_vacation",
    "resolve_vacation",
    "set_active",
    "set_working_hours",
]
