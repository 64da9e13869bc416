from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID

from app.api.deps import get_current_admin, get_notifier
from app.db.models import User
from app.db.session import get_session
from app.schemas.doctor import DoctorCreate, DoctorReject, DoctorResponse, RegistrationStatus
from app.services.doctor_service import DoctorService
from app.services.notification_service import Notifier

router = APIRouter()

async def get_doctor_service(session: AsyncSession = Depends(get_session)) -> DoctorService:
    return DoctorService(session)

@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    data: DoctorCreate,
    admin: User = Depends(get_current_admin),
    service: DoctorService = Depends(get_doctor_service),
    notifier: Notifier = Depends(get_notifier),
):
    doctor = await service.create_doctor(data)
    notifier.dispatch(service.notifications.pending_ids)
    return doctor

@router.get("", response_model=List[DoctorResponse])
async def read_doctors(
    specialization: Optional[str] = None,
    city: Optional[str] = None,
    search: Optional[str] = None,
    registration_status: Optional[RegistrationStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    service: DoctorService = Depends(get_doctor_service),
):
    return await service.get_doctors(specialization, city, search, registration_status, skip, limit)

@router.get("/{doctor_id}", response_model=DoctorResponse)
async def read_doctor(
    doctor_id: UUID,
    service: DoctorService = Depends(get_doctor_service),
):
    return await service.get_doctor(doctor_id)

@router.post("/{doctor_id}/approve", response_model=DoctorResponse)
async def approve_doctor(
    doctor_id: UUID,
    admin: User = Depends(get_current_admin),
    service: DoctorService = Depends(get_doctor_service),
    notifier: Notifier = Depends(get_notifier),
):
    doctor = await service.approve(doctor_id, admin)
    notifier.dispatch(service.notifications.pending_ids)
    return doctor

@router.post("/{doctor_id}/reject", response_model=DoctorResponse)
async def reject_doctor(
    doctor_id: UUID,
    data: DoctorReject,
    admin: User = Depends(get_current_admin),
    service: DoctorService = Depends(get_doctor_service),
    notifier: Notifier = Depends(get_notifier),
):
    doctor = await service.reject(doctor_id, data.reason)
    notifier.dispatch(service.notifications.pending_ids)
    return doctor
