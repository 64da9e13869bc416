from datetime import date

import pytest
from sqlmodel import select

from app.core.exceptions import ValidationError
from app.db.models import NotificationOutbox, User
from app.services.notification_service import (
    NotificationService,
    NotificationType,
    dispatch_notifications,
    render_message,
)

def test_render_vacation_request():
    message = render_message("VACATION_REQUEST", {
        "doctor_name": "Grace Mbuyi",
        "start_date": "2024-06-10",
        "end_date": "2024-06-14",
        "reason": "Conference",
    })

    assert message["subject"] == "New vacation request"
    assert "Dr. Grace Mbuyi" in message["sms"]
    assert "2024-06-10" in message["text"]

def test_render_unknown_event_type():
    with pytest.raises(ValidationError):
        render_message("SOMETHING_ELSE", {})

@pytest.mark.asyncio
async def test_enqueue_skips_recipients_without_contact(session):
    service = NotificationService(session)

    entry = service.enqueue(NotificationType.VACATION_REQUEST, {"phone": None, "email": None}, {})

    assert entry is None
    assert service.pending_ids == []

@pytest.mark.asyncio
async def test_enqueue_serializes_payload(session):
    service = NotificationService(session)

    entry = service.enqueue(
        NotificationType.VACATION_RESPONSE,
        {"phone": "+243800000002", "email": None},
        {"status": "approved", "start_date": date(2024, 6, 10), "end_date": date(2024, 6, 14), "reason": "Rest"},
    )
    await session.commit()

    assert entry.recipient == {"phone": "+243800000002"}
    assert entry.payload["start_date"] == "2024-06-10"
    assert service.pending_ids == [entry.id]

@pytest.mark.asyncio
async def test_failed_delivery_is_recorded(session, session_factory, gateway):
    gateway.fail = True
    user = User(role="patient", first_name="Jean", last_name="Ilunga", phone="+243800000004")
    session.add(user)
    service = NotificationService(session)
    entry = service.enqueue(
        NotificationType.PATIENT_OTP_VERIFICATION, {"phone": user.phone}, {"otp": "123456"}
    )
    await session.commit()

    await dispatch_notifications(session_factory, gateway, service.pending_ids)

    async with session_factory() as fresh:
        row = await fresh.get(NotificationOutbox, entry.id)
        assert row.status == "failed"
        assert row.attempts == 1
        assert row.last_error == "SMS provider unavailable"
        # The change the notification belongs to is still committed
        saved = (await fresh.execute(select(User).where(User.phone == user.phone))).scalars().first()
        assert saved is not None

    gateway.fail = False
    await dispatch_notifications(session_factory, gateway, service.pending_ids)

    async with session_factory() as fresh:
        row = await fresh.get(NotificationOutbox, entry.id)
        assert row.status == "sent"
        assert row.attempts == 2
        assert row.last_error is None
    assert gateway.sms == [("+243800000004", "Your Mbote verification code is 123456. It expires in 10 minutes.")]

@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_the_request(client, scheduled_doctor, patient, gateway, monday):
    gateway.fail = True

    response = await client.post(
        "/api/v1/appointments",
        json={
            "doctor_id": str(scheduled_doctor.profile.id),
            "date": monday.isoformat(),
            "start_time": "08:00",
            "end_time": "08:30",
            "reason": "Check-up",
        },
        headers=patient.headers,
    )

    assert response.status_code == 201
    listing = await client.get("/api/v1/appointments/me", headers=patient.headers)
    assert len(listing.json()) == 1
