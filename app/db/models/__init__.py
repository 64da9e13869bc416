from sqlmodel import SQLModel
from .user import User
from .patient import Patient
from .doctor import Doctor
from .schedule import DoctorSchedule, WorkingHours, ScheduleBreak, Holiday, Vacation
from .appointment import Appointment
from .payment import Payment
from .notification import NotificationOutbox

__all__ = [
    "SQLModel",
    "User",
    "Patient",
    "Doctor",
    "DoctorSchedule",
    "WorkingHours",
    "ScheduleBreak",
    "Holiday",
    "Vacation",
    "Appointment",
    "Payment",
    "NotificationOutbox",
]
