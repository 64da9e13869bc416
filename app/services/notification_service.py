"""
Notifications are written to an outbox in the same transaction as the change
that triggers them, then delivered by a background task after the response.
A delivery failure is recorded on the outbox row and never touches the
business data.
"""
import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol
from uuid import UUID

from fastapi import BackgroundTasks
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ValidationError
from app.core.utils import utcnow
from app.db.models import NotificationOutbox

logger = logging.getLogger("mbote.notifications")

class NotificationType(str, Enum):
    PATIENT_ACCOUNT_CREATION = "PATIENT_ACCOUNT_CREATION"
    PATIENT_OTP_VERIFICATION = "PATIENT_OTP_VERIFICATION"
    DOCTOR_ACCOUNT_CREATION = "DOCTOR_ACCOUNT_CREATION"
    DOCTOR_OTP_VERIFICATION = "DOCTOR_OTP_VERIFICATION"
    DOCTOR_APPROVED = "DOCTOR_APPROVED"
    DOCTOR_REJECTED = "DOCTOR_REJECTED"
    ADMIN_OTP_VERIFICATION = "ADMIN_OTP_VERIFICATION"
    APPOINTMENT_CREATED = "APPOINTMENT_CREATED"
    APPOINTMENT_CONFIRMED = "APPOINTMENT_CONFIRMED"
    APPOINTMENT_CANCELLED = "APPOINTMENT_CANCELLED"
    APPOINTMENT_COMPLETED = "APPOINTMENT_COMPLETED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_REFUNDED = "PAYMENT_REFUNDED"
    VACATION_REQUEST = "VACATION_REQUEST"
    VACATION_RESPONSE = "VACATION_RESPONSE"

def _otp_message(product: str):
    def render(data: dict) -> dict:
        return {
            "sms": f"Your {product} verification code is {data['otp']}. It expires in 10 minutes.",
            "subject": f"{product} verification code",
            "text": f"Your verification code is {data['otp']}.\nIt expires in 10 minutes.",
        }
    return render

def _vacation_verdict(data: dict) -> str:
    return "approved" if data["status"] == "approved" else "rejected"

MESSAGE_TEMPLATES = {
    NotificationType.PATIENT_ACCOUNT_CREATION: lambda data: {
        "sms": f"Welcome to Mbote! Your verification code is {data['otp']}. It expires in 10 minutes.",
        "subject": "Welcome to Mbote - verify your account",
        "text": f"Welcome to Mbote!\n\nYour verification code is {data['otp']}.\nIt expires in 10 minutes.",
    },
    NotificationType.PATIENT_OTP_VERIFICATION: _otp_message("Mbote"),
    NotificationType.DOCTOR_OTP_VERIFICATION: _otp_message("Mbote"),
    NotificationType.ADMIN_OTP_VERIFICATION: _otp_message("Mbote Admin"),
    NotificationType.DOCTOR_ACCOUNT_CREATION: lambda data: {
        "sms": f"Welcome to Mbote, Dr. {data['doctor_name']}! Sign in with your phone number to receive a code.",
        "subject": "Your Mbote doctor account",
        "text": f"Welcome to Mbote, Dr. {data['doctor_name']}!\n\nYour doctor account is ready. "
                "Sign in with your phone number to receive a verification code.",
    },
    NotificationType.DOCTOR_APPROVED: lambda data: {
        "sms": "Your Mbote doctor account was approved.",
        "subject": "Mbote account approved",
        "text": f"Dr. {data['doctor_name']}, your Mbote account was approved.",
    },
    NotificationType.DOCTOR_REJECTED: lambda data: {
        "sms": f"Your Mbote registration was rejected. Reason: {data['reason']}",
        "subject": "Mbote registration rejected",
        "text": f"Dr. {data['doctor_name']}, your registration was rejected.\nReason: {data['reason']}",
    },
    NotificationType.APPOINTMENT_CREATED: lambda data: {
        "sms": f"New Mbote appointment with {data['with_name']} on {data['date']} at {data['start_time']}.",
        "subject": "New Mbote appointment",
        "text": f"A new appointment was booked with {data['with_name']} on {data['date']} at {data['start_time']}.",
    },
    NotificationType.APPOINTMENT_CONFIRMED: lambda data: {
        "sms": f"Your Mbote appointment on {data['date']} at {data['start_time']} is confirmed.",
        "subject": "Appointment confirmed - Mbote",
        "text": f"Your appointment on {data['date']} at {data['start_time']} is confirmed.",
    },
    NotificationType.APPOINTMENT_CANCELLED: lambda data: {
        "sms": f"Your Mbote appointment on {data['date']} at {data['start_time']} was cancelled. Reason: {data['reason']}",
        "subject": "Appointment cancelled - Mbote",
        "text": f"Your appointment on {data['date']} at {data['start_time']} was cancelled.\nReason: {data['reason']}",
    },
    NotificationType.APPOINTMENT_COMPLETED: lambda data: {
        "sms": f"Your Mbote appointment on {data['date']} is complete. Thank you!",
        "subject": "Appointment completed - Mbote",
        "text": f"Your appointment on {data['date']} is marked as completed.",
    },
    NotificationType.PAYMENT_RECEIVED: lambda data: {
        "sms": f"Payment of {data['amount']} {data['currency']} received for the appointment with {data['with_name']} "
               f"on {data['date']} (ref {data['transaction_id']}).",
        "subject": "Payment received - Mbote",
        "text": f"A payment of {data['amount']} {data['currency']} was received for the appointment with "
                f"{data['with_name']} on {data['date']} at {data['start_time']}.\nReference: {data['transaction_id']}",
    },
    NotificationType.PAYMENT_FAILED: lambda data: {
        "sms": f"The payment of {data['amount']} {data['currency']} for the appointment with {data['with_name']} "
               f"on {data['date']} failed.",
        "subject": "Payment failed - Mbote",
        "text": f"The payment of {data['amount']} {data['currency']} for the appointment with {data['with_name']} "
                f"on {data['date']} at {data['start_time']} could not be processed.",
    },
    NotificationType.PAYMENT_REFUNDED: lambda data: {
        "sms": f"The payment of {data['amount']} {data['currency']} for the appointment with {data['with_name']} "
               f"on {data['date']} was refunded.",
        "subject": "Payment refunded - Mbote",
        "text": f"The payment of {data['amount']} {data['currency']} for the appointment with {data['with_name']} "
                f"on {data['date']} was refunded.\nReason: {data['reason']}",
    },
    NotificationType.VACATION_REQUEST: lambda data: {
        "sms": f"New vacation request from Dr. {data['doctor_name']} from {data['start_date']} to {data['end_date']}. Reason: {data['reason']}",
        "subject": "New vacation request",
        "text": f"Dr. {data['doctor_name']} requested a vacation from {data['start_date']} to {data['end_date']}.\n\n"
                f"Reason: {data['reason']}\n\nPlease review it in the admin panel.",
    },
    NotificationType.VACATION_RESPONSE: lambda data: {
        "sms": f"Your vacation request from {data['start_date']} to {data['end_date']} was {_vacation_verdict(data)}.",
        "subject": f"Vacation request {_vacation_verdict(data)}",
        "text": f"Your vacation request from {data['start_date']} to {data['end_date']} was {_vacation_verdict(data)}.\n\n"
                f"Reason: {data['reason']}",
    },
}

def render_message(event_type: str, data: dict) -> dict:
    try:
        template = MESSAGE_TEMPLATES[NotificationType(event_type)]
    except (KeyError, ValueError):
        raise ValidationError(f"Unsupported notification type: {event_type}")
    return template(data)

class NotificationGateway(Protocol):
    async def send_sms(self, phone: str, body: str) -> None: ...

    async def send_email(self, email: str, subject: str, body: str) -> None: ...

class LoggingNotificationGateway:
    """Simulated delivery: messages go to the log."""

    async def send_sms(self, phone: str, body: str) -> None:
        logger.info("SMS to %s: %s", phone, body)

    async def send_email(self, email: str, subject: str, body: str) -> None:
        logger.info("Email to %s [%s]: %s", email, subject, body)

notification_gateway = LoggingNotificationGateway()

def get_notification_gateway() -> NotificationGateway:
    return notification_gateway

class NotificationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.pending_ids: List[UUID] = []

    def enqueue(self, event_type: NotificationType, recipient: Dict[str, Optional[str]], data: dict) -> Optional[NotificationOutbox]:
        """Stage a notification; it is committed with the caller's transaction."""
        if event_type not in MESSAGE_TEMPLATES:
            raise ValidationError(f"Unsupported notification type: {event_type}")

        recipient = {k: v for k, v in recipient.items() if v}
        if not recipient.get("phone") and not recipient.get("email"):
            logger.warning("Dropping %s notification: recipient has no phone or email", event_type.value)
            return None

        entry = NotificationOutbox(
            event_type=event_type.value,
            recipient=recipient,
            payload=jsonable_encoder(data),
        )
        self.session.add(entry)
        self.pending_ids.append(entry.id)
        return entry

async def deliver(gateway: NotificationGateway, entry: NotificationOutbox) -> None:
    message = render_message(entry.event_type, entry.payload or {})
    if entry.recipient.get("phone"):
        await gateway.send_sms(entry.recipient["phone"], message["sms"])
    if entry.recipient.get("email"):
        await gateway.send_email(entry.recipient["email"], message["subject"], message["text"])

async def dispatch_notifications(
    session_factory: async_sessionmaker,
    gateway: NotificationGateway,
    notification_ids: Iterable[UUID],
) -> None:
    async with session_factory() as session:
        for notification_id in notification_ids:
            entry = await session.get(NotificationOutbox, notification_id)
            if entry is None or entry.status == "sent":
                continue

            entry.attempts += 1
            try:
                await deliver(gateway, entry)
            except Exception as exc:
                logger.exception("Delivery of %s notification %s failed", entry.event_type, entry.id)
                entry.status = "failed"
                entry.last_error = str(exc)
            else:
                entry.status = "sent"
                entry.sent_at = utcnow()
                entry.last_error = None

            session.add(entry)
            await session.commit()

class Notifier:
    """Schedules delivery of staged notifications once the response is sent."""

    def __init__(self, background_tasks: BackgroundTasks, session_factory: async_sessionmaker, gateway: NotificationGateway):
        self.background_tasks = background_tasks
        self.session_factory = session_factory
        self.gateway = gateway

    def dispatch(self, notification_ids: Iterable[UUID]) -> None:
        ids = list(notification_ids)
        if ids:
            self.background_tasks.add_task(dispatch_notifications, self.session_factory, self.gateway, ids)
