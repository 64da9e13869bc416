import logging
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import delete, select

from app import scheduling
from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError
from app.core.utils import utcnow
from app.db.models import Doctor, DoctorSchedule, Holiday, ScheduleBreak, User, Vacation, WorkingHours
from app.scheduling.availability import AppointmentLookup
from app.scheduling.timeutils import TimeLike, time_from_minutes
from app.schemas.schedule import BreakCreate, HolidayCreate, ScheduleUpsert, TimeSlot, VacationCreate
from app.services.notification_service import NotificationService, NotificationType

logger = logging.getLogger("mbote.schedules")

class ScheduleService:
    """
    Loads a doctor's schedule into an engine snapshot, applies engine
    operations and writes the result back.

    Writes go through `commit`, which bumps `DoctorSchedule.version` only if
    it still holds the value read at load time. A concurrent writer that
    committed first makes the second one fail with ConflictError instead of
    silently overwriting it. Bookings commit through it too, so a booking and
    a vacation request for the same doctor cannot both pass their checks.
    """

    def __init__(self, session: AsyncSession, appointment_lookup: Optional[AppointmentLookup] = None):
        self.session = session
        self.notifications = NotificationService(session)
        if appointment_lookup is None:
            from app.services.appointment_service import AppointmentService
            appointment_lookup = AppointmentService(session).find_appointments
        self.appointment_lookup = appointment_lookup

    # Loading

    async def _get_root(self, doctor_id: UUID) -> DoctorSchedule | None:
        stmt = select(DoctorSchedule).where(DoctorSchedule.doctor_id == doctor_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _rows(self, model, schedule_id: UUID, *order_by):
        stmt = select(model).where(model.schedule_id == schedule_id)
        if order_by:
            stmt = stmt.order_by(*order_by)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def _snapshot(self, root: DoctorSchedule) -> scheduling.Schedule:
        hours = await self._rows(WorkingHours, root.id)
        breaks = await self._rows(ScheduleBreak, root.id, ScheduleBreak.created_at)
        holidays = await self._rows(Holiday, root.id, Holiday.date)
        vacations = await self._rows(Vacation, root.id, Vacation.start_date)

        return scheduling.Schedule(
            doctor_id=root.doctor_id,
            is_active=root.is_active,
            working_hours={
                scheduling.Weekday(row.day_of_week): scheduling.TimeInterval(start=row.start_time, end=row.end_time)
                for row in hours
            },
            breaks=[
                scheduling.RecurringBreak(
                    day=row.day_of_week,
                    start=row.start_time,
                    end=row.end_time,
                    kind=row.kind,
                    reason=row.reason,
                )
                for row in breaks
            ],
            holidays=[
                scheduling.Holiday(date=row.date, reason=row.reason, is_recurring=row.is_recurring)
                for row in holidays
            ],
            vacations=[
                scheduling.Vacation(
                    id=row.id,
                    start_date=row.start_date,
                    end_date=row.end_date,
                    reason=row.reason,
                    status=row.status,
                    approved_by=row.approved_by,
                    approval_date=row.approval_date,
                )
                for row in vacations
            ],
        )

    async def load(self, doctor_id: UUID) -> Tuple[DoctorSchedule, scheduling.Schedule]:
        root = await self._get_root(doctor_id)
        if not root:
            raise NotFoundError("Schedule not found")
        return root, await self._snapshot(root)

    async def get_schedule(self, doctor_id: UUID) -> scheduling.Schedule:
        _, schedule = await self.load(doctor_id)
        return schedule

    # Row builders

    def _hours_row(self, root: DoctorSchedule, day: scheduling.Weekday, hours: scheduling.TimeInterval) -> WorkingHours:
        return WorkingHours(
            schedule_id=root.id,
            day_of_week=day.value,
            start_time=time_from_minutes(hours.start),
            end_time=time_from_minutes(hours.end),
        )

    def _break_row(self, root: DoctorSchedule, brk: scheduling.RecurringBreak) -> ScheduleBreak:
        return ScheduleBreak(
            schedule_id=root.id,
            day_of_week=brk.day.value,
            start_time=time_from_minutes(brk.start),
            end_time=time_from_minutes(brk.end),
            kind=brk.kind.value,
            reason=brk.reason,
        )

    def _holiday_row(self, root: DoctorSchedule, holiday: scheduling.Holiday) -> Holiday:
        return Holiday(
            schedule_id=root.id,
            date=holiday.date,
            reason=holiday.reason,
            is_recurring=holiday.is_recurring,
        )

    @staticmethod
    def _to_break(data: BreakCreate) -> scheduling.RecurringBreak:
        return scheduling.RecurringBreak(
            day=data.day, start=data.start, end=data.end, kind=data.type, reason=data.reason
        )

    @staticmethod
    def _to_holiday(data: HolidayCreate) -> scheduling.Holiday:
        return scheduling.Holiday(date=data.date, reason=data.reason, is_recurring=data.is_recurring)

    async def commit(self, root: DoctorSchedule):
        """Commit pending changes if `root` is still at the version it was loaded with."""
        schedule_id = root.id
        result = await self.session.execute(
            update(DoctorSchedule)
            .where(DoctorSchedule.id == schedule_id, DoctorSchedule.version == root.version)
            .values(version=root.version + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # Rollback expires root, so nothing may read from it past this point
            await self.session.rollback()
            logger.warning("Concurrent update of schedule %s rejected", schedule_id)
            raise ConflictError("Schedule was modified by another request, please retry")

        await self.session.commit()
        await self.session.refresh(root)

    # Mutations

    async def upsert_schedule(self, doctor_id: UUID, data: ScheduleUpsert) -> scheduling.Schedule:
        """Create the schedule or replace its hours, breaks and holidays. Vacations are kept."""
        doctor = await self.session.get(Doctor, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        root = await self._get_root(doctor_id)
        if root:
            current = await self._snapshot(root)
        else:
            root = DoctorSchedule(doctor_id=doctor_id)
            self.session.add(root)
            await self.session.flush()
            current = scheduling.Schedule(doctor_id=doctor_id)

        schedule = scheduling.Schedule(
            doctor_id=doctor_id,
            is_active=current.is_active,
            vacations=current.vacations,
        )
        for day, slot in data.working_hours.items():
            scheduling.set_working_hours(schedule, day, slot.to_interval())
        for brk in data.breaks:
            scheduling.add_break(
                schedule,
                self._to_break(brk),
                allow_outside_working_hours=settings.ALLOW_BREAKS_OUTSIDE_WORKING_HOURS,
            )
        for holiday in data.holidays:
            scheduling.add_holiday(schedule, self._to_holiday(holiday))

        for model in (WorkingHours, ScheduleBreak, Holiday):
            await self.session.execute(delete(model).where(model.schedule_id == root.id))
        for day, hours in schedule.working_hours.items():
            self.session.add(self._hours_row(root, day, hours))
        for brk in schedule.breaks:
            self.session.add(self._break_row(root, brk))
        for holiday in schedule.holidays:
            self.session.add(self._holiday_row(root, holiday))

        await self.commit(root)
        logger.info("Saved schedule for doctor %s (%d working days)", doctor_id, len(schedule.working_hours))
        return schedule

    async def set_status(self, doctor_id: UUID, is_active: bool) -> scheduling.Schedule:
        root, schedule = await self.load(doctor_id)
        scheduling.set_active(schedule, is_active)

        root.is_active = is_active
        self.session.add(root)
        await self.commit(root)
        logger.info("Schedule for doctor %s is now %s", doctor_id, "active" if is_active else "inactive")
        return schedule

    async def set_working_hours(self, doctor_id: UUID, day: scheduling.Weekday, slot: Optional[TimeSlot]) -> scheduling.Schedule:
        root, schedule = await self.load(doctor_id)
        hours = slot.to_interval() if slot else None
        scheduling.set_working_hours(schedule, day, hours)

        await self.session.execute(
            delete(WorkingHours).where(WorkingHours.schedule_id == root.id, WorkingHours.day_of_week == day.value)
        )
        if hours:
            self.session.add(self._hours_row(root, day, hours))

        await self.commit(root)
        logger.info("Working hours for doctor %s on %s set to %s", doctor_id, day.value, hours.label() if hours else "off")
        return schedule

    async def add_break(self, doctor_id: UUID, data: BreakCreate) -> scheduling.Schedule:
        root, schedule = await self.load(doctor_id)
        brk = self._to_break(data)
        scheduling.add_break(
            schedule,
            brk,
            allow_outside_working_hours=settings.ALLOW_BREAKS_OUTSIDE_WORKING_HOURS,
        )

        self.session.add(self._break_row(root, brk))
        await self.commit(root)
        logger.info("Added %s break %s on %s for doctor %s", brk.kind.value, brk.label(), brk.day.value, doctor_id)
        return schedule

    async def add_holiday(self, doctor_id: UUID, data: HolidayCreate) -> scheduling.Schedule:
        root, schedule = await self.load(doctor_id)
        holiday = self._to_holiday(data)
        scheduling.add_holiday(schedule, holiday)

        self.session.add(self._holiday_row(root, holiday))
        await self.commit(root)
        logger.info("Added holiday %s for doctor %s", holiday.date, doctor_id)
        return schedule

    async def request_vacation(self, doctor_id: UUID, data: VacationCreate, doctor_user: User) -> scheduling.Vacation:
        root, schedule = await self.load(doctor_id)

        if not await scheduling.can_request_vacation(doctor_id, data.start_date, data.end_date, self.appointment_lookup):
            raise ConflictError("Appointments are booked during this period")

        vacation = scheduling.request_vacation(schedule, data.start_date, data.end_date, data.reason)
        self.session.add(Vacation(
            id=vacation.id,
            schedule_id=root.id,
            start_date=vacation.start_date,
            end_date=vacation.end_date,
            reason=vacation.reason,
            status=vacation.status.value,
        ))

        self.notifications.enqueue(
            NotificationType.VACATION_REQUEST,
            {"phone": settings.ADMIN_PHONE, "email": settings.ADMIN_EMAIL},
            {
                "doctor_name": doctor_user.full_name,
                "start_date": vacation.start_date,
                "end_date": vacation.end_date,
                "reason": vacation.reason,
            },
        )
        await self.commit(root)
        logger.info("Doctor %s requested vacation %s to %s", doctor_id, vacation.start_date, vacation.end_date)
        return vacation

    async def resolve_vacation(
        self,
        doctor_id: UUID,
        vacation_id: UUID,
        status: str,
        admin: User,
    ) -> scheduling.Vacation:
        root, schedule = await self.load(doctor_id)
        vacation = scheduling.resolve_vacation(schedule, vacation_id, status, admin.id, utcnow())

        row = await self.session.get(Vacation, vacation_id)
        row.status = vacation.status.value
        row.approved_by = vacation.approved_by
        row.approval_date = vacation.approval_date
        self.session.add(row)

        stmt = select(User).join(Doctor, Doctor.user_id == User.id).where(Doctor.id == doctor_id)
        doctor_user = (await self.session.execute(stmt)).scalars().first()
        self.notifications.enqueue(
            NotificationType.VACATION_RESPONSE,
            {"phone": doctor_user.phone, "email": doctor_user.email},
            {
                "status": vacation.status.value,
                "start_date": vacation.start_date,
                "end_date": vacation.end_date,
                "reason": vacation.reason,
            },
        )
        await self.commit(root)
        logger.info("Vacation %s of doctor %s %s by %s", vacation_id, doctor_id, vacation.status.value, admin.id)
        return vacation

    # Queries

    async def get_availability(self, doctor_id: UUID, day: date, slot_minutes: Optional[int] = None) -> List[scheduling.TimeInterval]:
        schedule = await self.get_schedule(doctor_id)
        return scheduling.day_availability(schedule, day, settings.SLOT_DURATION_MINUTES if slot_minutes is None else slot_minutes)

    async def check_slot(self, doctor_id: UUID, day: date, start: TimeLike, end: TimeLike) -> bool:
        schedule = await self.get_schedule(doctor_id)
        return scheduling.is_slot_available(schedule, day, start, end)
