from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from app.api.deps import get_current_admin, get_current_user, get_notifier
from app.db.models import Doctor, User
from app.db.session import get_session
from app.core.config import settings
from app.scheduling import Weekday
from app.scheduling.timeutils import HHMM_PATTERN
from app.schemas.schedule import (
    AvailabilityResponse,
    BreakCreate,
    HolidayCreate,
    ScheduleResponse,
    ScheduleStatusUpdate,
    ScheduleUpsert,
    SlotCheckResponse,
    TimeSlot,
    VacationCreate,
    VacationResolve,
    VacationResponse,
)
from app.services.doctor_service import DoctorService
from app.services.notification_service import Notifier
from app.services.schedule_service import ScheduleService

router = APIRouter()

async def get_schedule_service(session: AsyncSession = Depends(get_session)) -> ScheduleService:
    return ScheduleService(session)

async def get_schedule_owner(
    doctor_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    """The doctor whose schedule is addressed, if the caller is that doctor."""
    if current_user.role != "doctor":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    doctor = await DoctorService(session).get_doctor_by_user(current_user.id)
    if doctor is None or doctor.id != doctor_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only manage your own schedule")
    return doctor

async def get_schedule_reader(
    doctor_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    """The schedule owner or an admin."""
    if current_user.role == "admin":
        return current_user
    await get_schedule_owner(doctor_id, current_user, session)
    return current_user

@router.put("", response_model=ScheduleResponse)
async def upsert_schedule(
    doctor_id: UUID,
    data: ScheduleUpsert,
    owner: Doctor = Depends(get_schedule_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.upsert_schedule(doctor_id, data)
    return ScheduleResponse.from_snapshot(schedule)

@router.get("", response_model=ScheduleResponse)
async def read_schedule(
    doctor_id: UUID,
    reader: User = Depends(get_schedule_reader),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.get_schedule(doctor_id)
    return ScheduleResponse.from_snapshot(schedule)

@router.patch("/status", response_model=ScheduleResponse)
async def update_schedule_status(
    doctor_id: UUID,
    data: ScheduleStatusUpdate,
    reader: User = Depends(get_schedule_reader),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.set_status(doctor_id, data.is_active)
    return ScheduleResponse.from_snapshot(schedule)

@router.get("/availability", response_model=AvailabilityResponse)
async def read_availability(
    doctor_id: UUID,
    day: date = Query(..., alias="date"),
    slot_minutes: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    if slot_minutes is None:
        slot_minutes = settings.SLOT_DURATION_MINUTES
    slots = await service.get_availability(doctor_id, day, slot_minutes)
    return AvailabilityResponse(
        doctor_id=doctor_id,
        date=day,
        slot_minutes=slot_minutes,
        slots=[TimeSlot.from_interval(slot) for slot in slots],
    )

@router.get("/slot-check", response_model=SlotCheckResponse)
async def check_slot(
    doctor_id: UUID,
    start: str = Query(..., pattern=HHMM_PATTERN),
    end: str = Query(..., pattern=HHMM_PATTERN),
    day: date = Query(..., alias="date"),
    current_user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
):
    available = await service.check_slot(doctor_id, day, start, end)
    return SlotCheckResponse(doctor_id=doctor_id, date=day, start=start, end=end, available=available)

@router.put("/working-hours/{day}", response_model=ScheduleResponse)
async def set_working_hours(
    doctor_id: UUID,
    day: Weekday,
    data: TimeSlot,
    owner: Doctor = Depends(get_schedule_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.set_working_hours(doctor_id, day, data)
    return ScheduleResponse.from_snapshot(schedule)

@router.delete("/working-hours/{day}", response_model=ScheduleResponse)
async def clear_working_hours(
    doctor_id: UUID,
    day: Weekday,
    owner: Doctor = Depends(get_schedule_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.set_working_hours(doctor_id, day, None)
    return ScheduleResponse.from_snapshot(schedule)

@router.post("/breaks", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def add_break(
    doctor_id: UUID,
    data: BreakCreate,
    owner: Doctor = Depends(get_schedule_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.add_break(doctor_id, data)
    return ScheduleResponse.from_snapshot(schedule)

@router.post("/holidays", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def add_holiday(
    doctor_id: UUID,
    data: HolidayCreate,
    owner: Doctor = Depends(get_schedule_owner),
    service: ScheduleService = Depends(get_schedule_service),
):
    schedule = await service.add_holiday(doctor_id, data)
    return ScheduleResponse.from_snapshot(schedule)

@router.post("/vacations", response_model=VacationResponse, status_code=status.HTTP_201_CREATED)
async def request_vacation(
    doctor_id: UUID,
    data: VacationCreate,
    owner: Doctor = Depends(get_schedule_owner),
    current_user: User = Depends(get_current_user),
    service: ScheduleService = Depends(get_schedule_service),
    notifier: Notifier = Depends(get_notifier),
):
    vacation = await service.request_vacation(doctor_id, data, current_user)
    notifier.dispatch(service.notifications.pending_ids)
    return VacationResponse.model_validate(vacation)

@router.patch("/vacations/{vacation_id}", response_model=VacationResponse)
async def resolve_vacation(
    doctor_id: UUID,
    vacation_id: UUID,
    data: VacationResolve,
    admin: User = Depends(get_current_admin),
    service: ScheduleService = Depends(get_schedule_service),
    notifier: Notifier = Depends(get_notifier),
):
    vacation = await service.resolve_vacation(doctor_id, vacation_id, data.status, admin)
    notifier.dispatch(service.notifications.pending_ids)
    return VacationResponse.model_validate(vacation)
