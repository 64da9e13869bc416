from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID

from app.api.deps import get_current_doctor, get_current_patient, get_current_user, get_notifier
from app.db.models import Doctor, Patient, User
from app.db.session import get_session
from app.schemas.appointment import AppointmentCancel, AppointmentCreate, AppointmentResponse
from app.schemas.payment import PaymentCreate, PaymentResponse
from app.services.appointment_service import AppointmentService
from app.services.notification_service import Notifier
from app.services.payment_service import PaymentService

router = APIRouter()

async def get_appointment_service(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    patient: Patient = Depends(get_current_patient),
    service: AppointmentService = Depends(get_appointment_service),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await service.create_appointment(patient, data)
    notifier.dispatch(service.notifications.pending_ids)
    return appointment

@router.get("/me", response_model=List[AppointmentResponse])
async def read_my_appointments(
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.list_for_user(current_user)

@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: UUID,
    doctor: Doctor = Depends(get_current_doctor),
    service: AppointmentService = Depends(get_appointment_service),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await service.confirm(appointment_id, doctor)
    notifier.dispatch(service.notifications.pending_ids)
    return appointment

@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: UUID,
    doctor: Doctor = Depends(get_current_doctor),
    service: AppointmentService = Depends(get_appointment_service),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await service.complete(appointment_id, doctor)
    notifier.dispatch(service.notifications.pending_ids)
    return appointment

@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentCancel,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_appointment_service),
    notifier: Notifier = Depends(get_notifier),
):
    appointment = await service.cancel(appointment_id, current_user, data.reason)
    notifier.dispatch(service.notifications.pending_ids)
    return appointment

@router.post("/{appointment_id}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def pay_appointment(
    appointment_id: UUID,
    data: PaymentCreate,
    patient: Patient = Depends(get_current_patient),
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    service = PaymentService(session)
    payment = await service.create_payment(appointment_id, patient, data)
    notifier.dispatch(service.notifications.pending_ids)
    return payment
