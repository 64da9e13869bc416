from fastapi import APIRouter, Depends
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.deps import get_current_admin, get_current_user, get_notifier
from app.db.models import User
from app.db.session import get_session
from app.schemas.payment import PaymentRefund, PaymentResponse
from app.services.notification_service import Notifier
from app.services.payment_service import PaymentService

router = APIRouter()

async def get_payment_service(session: AsyncSession = Depends(get_session)) -> PaymentService:
    return PaymentService(session)

@router.get("", response_model=List[PaymentResponse])
async def read_payments(
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.list_for_user(current_user)

@router.get("/{payment_id}", response_model=PaymentResponse)
async def read_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    return await service.get_payment(payment_id, current_user)

@router.post("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: UUID,
    data: PaymentRefund,
    admin: User = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
    notifier: Notifier = Depends(get_notifier),
):
    payment = await service.refund(payment_id, data.reason)
    notifier.dispatch(service.notifications.pending_ids)
    return payment
