import logging
from datetime import timedelta
from typing import List, Optional, Protocol
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.core.utils import generate_transaction_id, utcnow
from app.db.models import Appointment, Doctor, Patient, Payment, User
from app.schemas.appointment import AppointmentStatus, PaymentState
from app.schemas.payment import PaymentCreate, PaymentStatus
from app.services.notification_service import NotificationService, NotificationType

logger = logging.getLogger("mbote.payments")

class PaymentDeclined(Exception):
    pass

class PaymentProcessor(Protocol):
    async def charge(self, amount: float, currency: str, method: str) -> str:
        """Returns the processor's transaction id or raises PaymentDeclined."""
        ...

class StubPaymentProcessor:
    """Accepts every charge."""

    async def charge(self, amount: float, currency: str, method: str) -> str:
        return generate_transaction_id()

class PaymentService:
    def __init__(self, session: AsyncSession, processor: Optional[PaymentProcessor] = None):
        self.session = session
        self.processor = processor or StubPaymentProcessor()
        self.notifications = NotificationService(session)

    async def _notify(self, event_type: NotificationType, payment: Payment, appointment: Appointment, **extra):
        """Tells both the patient and the doctor."""
        patient_stmt = select(User).join(Patient, Patient.user_id == User.id).where(Patient.id == payment.patient_id)
        doctor_stmt = select(User).join(Doctor, Doctor.user_id == User.id).where(Doctor.id == payment.doctor_id)
        patient_user = (await self.session.execute(patient_stmt)).scalars().first()
        doctor_user = (await self.session.execute(doctor_stmt)).scalars().first()

        data = {
            "amount": payment.amount,
            "currency": payment.currency,
            "transaction_id": payment.transaction_id,
            "date": appointment.date,
            "start_time": appointment.start_time.strftime("%H:%M"),
        }
        data.update(extra)
        for user, with_name in ((patient_user, f"Dr. {doctor_user.full_name}"), (doctor_user, patient_user.full_name)):
            self.notifications.enqueue(
                event_type, {"phone": user.phone, "email": user.email}, {**data, "with_name": with_name}
            )

    async def create_payment(self, appointment_id: UUID, patient: Patient, data: PaymentCreate) -> Payment:
        appointment = await self.session.get(Appointment, appointment_id)
        if not appointment or appointment.patient_id != patient.id:
            raise NotFoundError("Appointment not found")

        if appointment.status not in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
            raise ConflictError(f"Cannot pay for a {appointment.status} appointment")

        stmt = select(Payment).where(Payment.appointment_id == appointment_id)
        payment = (await self.session.execute(stmt)).scalars().first()
        if payment and payment.status != PaymentStatus.FAILED:
            raise ConflictError("Payment already exists for this appointment")

        amount = data.amount if data.amount is not None else (appointment.payment_amount or 0.0)
        if payment is None:
            payment = Payment(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                doctor_id=appointment.doctor_id,
                amount=amount,
                payment_method=data.payment_method.value,
            )
        payment.amount = amount
        payment.currency = data.currency.value
        payment.payment_method = data.payment_method.value
        payment.payment_date = utcnow()

        try:
            payment.transaction_id = await self.processor.charge(amount, payment.currency, payment.payment_method)
        except PaymentDeclined as exc:
            payment.status = PaymentStatus.FAILED.value
            payment.meta = {"error": str(exc)}
            self.session.add(payment)
            await self._notify(NotificationType.PAYMENT_FAILED, payment, appointment)
            await self.session.commit()
            await self.session.refresh(payment)
            logger.warning("Payment for appointment %s declined: %s", appointment.id, exc)
            return payment

        payment.status = PaymentStatus.COMPLETED.value
        payment.meta = None
        self.session.add(payment)

        appointment.payment_status = PaymentState.PAID.value
        appointment.payment_amount = amount
        appointment.payment_date = payment.payment_date
        self.session.add(appointment)

        await self._notify(NotificationType.PAYMENT_RECEIVED, payment, appointment)
        await self.session.commit()
        await self.session.refresh(payment)

        logger.info("Payment %s of %s %s completed for appointment %s", payment.id, amount, payment.currency, appointment.id)
        return payment

    async def get_payment(self, payment_id: UUID, user: User) -> Payment:
        payment = await self.session.get(Payment, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")

        if user.role == "admin":
            return payment

        if user.role == "patient":
            owner = await self.session.get(Patient, payment.patient_id)
        else:
            owner = await self.session.get(Doctor, payment.doctor_id)
        if not owner or owner.user_id != user.id:
            raise PermissionDeniedError("Not allowed to view this payment")
        return payment

    async def list_for_user(self, user: User) -> List[Payment]:
        """Newest first. Admins see every payment."""
        stmt = select(Payment)
        if user.role == "patient":
            stmt = stmt.join(Patient, Patient.id == Payment.patient_id).where(Patient.user_id == user.id)
        elif user.role == "doctor":
            stmt = stmt.join(Doctor, Doctor.id == Payment.doctor_id).where(Doctor.user_id == user.id)
        stmt = stmt.order_by(Payment.payment_date.desc())
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def refund(self, payment_id: UUID, reason: str) -> Payment:
        payment = await self.session.get(Payment, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")

        if payment.status != PaymentStatus.COMPLETED:
            raise ConflictError(f"Cannot refund a {payment.status} payment")

        if utcnow() - payment.payment_date > timedelta(days=settings.REFUND_WINDOW_DAYS):
            raise ConflictError(f"Refunds are only possible within {settings.REFUND_WINDOW_DAYS} days of payment")

        payment.status = PaymentStatus.REFUNDED.value
        payment.refund_date = utcnow()
        payment.refund_reason = reason
        self.session.add(payment)

        appointment = await self.session.get(Appointment, payment.appointment_id)
        appointment.payment_status = PaymentState.REFUNDED.value
        self.session.add(appointment)

        await self._notify(NotificationType.PAYMENT_REFUNDED, payment, appointment, reason=reason)
        await self.session.commit()
        await self.session.refresh(payment)

        logger.info("Payment %s refunded: %s", payment.id, reason)
        return payment
