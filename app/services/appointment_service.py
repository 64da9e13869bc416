import logging
from datetime import date, datetime, timedelta
from typing import List, Sequence, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app import scheduling
from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.core.utils import clinic_now, utcnow
from app.db.models import Appointment, Doctor, Patient, User
from app.scheduling.timeutils import minutes_from_time, overlaps, time_from_minutes, to_minutes
from app.schemas.appointment import AppointmentCreate, AppointmentStatus
from app.services.notification_service import NotificationService, NotificationType

logger = logging.getLogger("mbote.appointments")

class AppointmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.notifications = NotificationService(session)

    async def find_appointments(
        self,
        doctor_id: UUID,
        start_date: date,
        end_date: date,
        statuses: Sequence[str],
    ) -> List[Appointment]:
        """Appointments of a doctor dated within [start_date, end_date]."""
        stmt = select(Appointment).where(
            Appointment.doctor_id == doctor_id,
            Appointment.date >= start_date,
            Appointment.date <= end_date,
            Appointment.status.in_(list(statuses))
        ).order_by(Appointment.date, Appointment.start_time)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def _parties(self, appointment: Appointment) -> Tuple[User, User]:
        patient_stmt = select(User).join(Patient, Patient.user_id == User.id).where(Patient.id == appointment.patient_id)
        doctor_stmt = select(User).join(Doctor, Doctor.user_id == User.id).where(Doctor.id == appointment.doctor_id)
        patient_user = (await self.session.execute(patient_stmt)).scalars().first()
        doctor_user = (await self.session.execute(doctor_stmt)).scalars().first()
        return patient_user, doctor_user

    def _notify(self, event_type: NotificationType, user: User, appointment: Appointment, **extra):
        data = {
            "appointment_id": appointment.id,
            "date": appointment.date,
            "start_time": appointment.start_time.strftime("%H:%M"),
        }
        data.update(extra)
        self.notifications.enqueue(event_type, {"phone": user.phone, "email": user.email}, data)

    async def get_appointment(self, appointment_id: UUID) -> Appointment:
        appointment = await self.session.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    async def create_appointment(self, patient: Patient, data: AppointmentCreate) -> Appointment:
        doctor = await self.session.get(Doctor, data.doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        start = to_minutes(data.start_time)
        end = to_minutes(data.end_time)
        if start >= end:
            raise ValidationError("Appointment start time must be before end time")

        starts_at = datetime.combine(data.date, time_from_minutes(start))
        if starts_at <= clinic_now():
            raise ValidationError("Appointments cannot be booked in the past")

        from app.services.schedule_service import ScheduleService
        schedules = ScheduleService(self.session, self.find_appointments)
        root, schedule = await schedules.load(data.doctor_id)
        if not scheduling.is_slot_available(schedule, data.date, start, end):
            raise ConflictError("The doctor is not available at this time")

        booked = await self.find_appointments(
            data.doctor_id, data.date, data.date, scheduling.ACTIVE_APPOINTMENT_STATUSES
        )
        for other in booked:
            if overlaps(start, end, minutes_from_time(other.start_time), minutes_from_time(other.end_time)):
                raise ConflictError("This slot is already booked")

        appointment = Appointment(
            doctor_id=data.doctor_id,
            patient_id=patient.id,
            date=data.date,
            start_time=time_from_minutes(start),
            end_time=time_from_minutes(end),
            type=data.type.value,
            reason=data.reason,
            notes=data.notes,
            payment_amount=doctor.consultation_fee,
        )
        self.session.add(appointment)

        patient_user, doctor_user = await self._parties(appointment)
        self._notify(NotificationType.APPOINTMENT_CREATED, doctor_user, appointment, with_name=patient_user.full_name)
        self._notify(NotificationType.APPOINTMENT_CREATED, patient_user, appointment, with_name=f"Dr. {doctor_user.full_name}")

        # Bumps the schedule version, so a concurrent booking or vacation request loses
        await schedules.commit(root)
        await self.session.refresh(appointment)

        logger.info("Booked appointment %s with doctor %s on %s %s", appointment.id, doctor.id, appointment.date, data.start_time)
        return appointment

    async def list_for_user(self, user: User) -> List[Appointment]:
        stmt = select(Appointment)
        if user.role == "patient":
            stmt = stmt.join(Patient, Patient.id == Appointment.patient_id).where(Patient.user_id == user.id)
        elif user.role == "doctor":
            stmt = stmt.join(Doctor, Doctor.id == Appointment.doctor_id).where(Doctor.user_id == user.id)
        stmt = stmt.order_by(Appointment.date, Appointment.start_time)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def _doctor_appointment(self, appointment_id: UUID, doctor: Doctor) -> Appointment:
        appointment = await self.session.get(Appointment, appointment_id)
        if not appointment or appointment.doctor_id != doctor.id:
            raise NotFoundError("Appointment not found")
        return appointment

    async def confirm(self, appointment_id: UUID, doctor: Doctor) -> Appointment:
        appointment = await self._doctor_appointment(appointment_id, doctor)
        if appointment.status != AppointmentStatus.PENDING:
            raise ConflictError(f"Cannot confirm a {appointment.status} appointment")

        appointment.status = AppointmentStatus.CONFIRMED.value
        self.session.add(appointment)

        patient_user, _ = await self._parties(appointment)
        self._notify(NotificationType.APPOINTMENT_CONFIRMED, patient_user, appointment)
        await self.session.commit()
        await self.session.refresh(appointment)

        logger.info("Appointment %s confirmed", appointment.id)
        return appointment

    async def complete(self, appointment_id: UUID, doctor: Doctor) -> Appointment:
        appointment = await self._doctor_appointment(appointment_id, doctor)
        if appointment.status != AppointmentStatus.CONFIRMED:
            raise ConflictError(f"Cannot complete a {appointment.status} appointment")

        appointment.status = AppointmentStatus.COMPLETED.value
        self.session.add(appointment)

        patient_user, _ = await self._parties(appointment)
        self._notify(NotificationType.APPOINTMENT_COMPLETED, patient_user, appointment)
        await self.session.commit()
        await self.session.refresh(appointment)

        logger.info("Appointment %s completed", appointment.id)
        return appointment

    async def cancel(self, appointment_id: UUID, user: User, reason: str) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        patient_user, doctor_user = await self._parties(appointment)
        if user.id not in (patient_user.id, doctor_user.id):
            raise PermissionDeniedError("You cannot cancel this appointment")

        if appointment.status not in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
            raise ConflictError(f"Cannot cancel a {appointment.status} appointment")

        notice = timedelta(hours=settings.CANCELLATION_NOTICE_HOURS)
        if appointment.starts_at() - clinic_now() < notice:
            raise ConflictError(
                f"Appointments can only be cancelled up to {settings.CANCELLATION_NOTICE_HOURS} hours in advance"
            )

        appointment.status = AppointmentStatus.CANCELLED.value
        appointment.cancellation_reason = reason
        appointment.cancelled_by = user.id
        appointment.cancellation_date = utcnow()
        self.session.add(appointment)

        other_party = doctor_user if user.id == patient_user.id else patient_user
        self._notify(NotificationType.APPOINTMENT_CANCELLED, other_party, appointment, reason=reason)
        await self.session.commit()
        await self.session.refresh(appointment)

        logger.info("Appointment %s cancelled by %s", appointment.id, user.id)
        return appointment
