import json
from collections import namedtuple
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.redis import get_redis
from app.core.security import create_access_token
from app.db.models import Doctor, Patient, User
from app.db.session import get_session_factory, init_db
from app.main import app
from app.services.notification_service import get_notification_gateway

Actor = namedtuple("Actor", "user profile headers")

class FakeRedisClient:
    """In-memory stand-in for RedisClient; TTLs are recorded, not enforced."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def set_otp(self, phone, code, expire):
        self.store[f"otp:{phone}"] = code
        self.ttls[f"otp:{phone}"] = expire

    async def get_otp(self, phone):
        return self.store.get(f"otp:{phone}")

    async def delete_otp(self, phone):
        self.store.pop(f"otp:{phone}", None)

    async def set_token(self, token, value, expire):
        self.store[f"token:{token}"] = value
        self.ttls[f"token:{token}"] = expire

    async def get_token(self, token):
        return self.store.get(f"token:{token}")

    async def delete_token(self, token):
        self.store.pop(f"token:{token}", None)

    async def close(self):
        pass

class RecordingGateway:
    def __init__(self, fail=False):
        self.fail = fail
        self.sms = []
        self.emails = []

    async def send_sms(self, phone, body):
        if self.fail:
            raise RuntimeError("SMS provider unavailable")
        self.sms.append((phone, body))

    async def send_email(self, email, subject, body):
        if self.fail:
            raise RuntimeError("SMTP unavailable")
        self.emails.append((email, subject, body))

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session

@pytest.fixture
def redis_client():
    return FakeRedisClient()

@pytest.fixture
def gateway():
    return RecordingGateway()

@pytest_asyncio.fixture
async def client(session_factory, redis_client, gateway):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_notification_gateway] = lambda: gateway
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

async def sign_in(redis_client, user) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role})
    await redis_client.set_token(token, json.dumps({"user_id": str(user.id), "role": user.role}), 3600)
    return {"Authorization": f"Bearer {token}"}

@pytest_asyncio.fixture
async def admin(session_factory, redis_client):
    async with session_factory() as session:
        user = User(role="admin", first_name="Ada", last_name="Admin", phone="+243800000001", email="admin@mbote.example.com")
        session.add(user)
        await session.commit()
    return Actor(user, None, await sign_in(redis_client, user))

@pytest_asyncio.fixture
async def doctor(session_factory, redis_client):
    async with session_factory() as session:
        user = User(role="doctor", first_name="Grace", last_name="Mbuyi", phone="+243800000002", email="grace@mbote.example.com")
        session.add(user)
        await session.flush()
        profile = Doctor(
            user_id=user.id,
            specialization="cardiology",
            license_number="LIC-0001",
            consultation_fee=25.0,
            languages=["fr", "ln"],
            city="Kinshasa",
        )
        session.add(profile)
        await session.commit()
    return Actor(user, profile, await sign_in(redis_client, user))

@pytest_asyncio.fixture
async def other_doctor(session_factory, redis_client):
    async with session_factory() as session:
        user = User(role="doctor", first_name="Paul", last_name="Kabongo", phone="+243800000003")
        session.add(user)
        await session.flush()
        profile = Doctor(user_id=user.id, specialization="pediatrics", license_number="LIC-0002", consultation_fee=15.0)
        session.add(profile)
        await session.commit()
    return Actor(user, profile, await sign_in(redis_client, user))

@pytest_asyncio.fixture
async def patient(session_factory, redis_client):
    async with session_factory() as session:
        user = User(role="patient", first_name="Jean", last_name="Ilunga", phone="+243800000004", email="jean@mbote.example.com")
        session.add(user)
        await session.flush()
        profile = Patient(user_id=user.id, gender="M")
        session.add(profile)
        await session.commit()
    return Actor(user, profile, await sign_in(redis_client, user))

@pytest_asyncio.fixture
async def other_patient(session_factory, redis_client):
    async with session_factory() as session:
        user = User(role="patient", first_name="Eve", last_name="Mutombo", phone="+243800000005")
        session.add(user)
        await session.flush()
        profile = Patient(user_id=user.id)
        session.add(profile)
        await session.commit()
    return Actor(user, profile, await sign_in(redis_client, user))

@pytest.fixture
def monday():
    """A Monday at least a week away, so bookings on it are cancellable."""
    today = date.today()
    return today + timedelta(days=((7 - today.weekday()) % 7 or 7) + 7)

@pytest.fixture
def weekly_hours():
    return {
        "working_hours": {
            "monday": {"start": "08:00", "end": "12:00"},
            "wednesday": {"start": "14:00", "end": "18:00"},
        },
        "breaks": [
            {"day": "monday", "start": "10:00", "end": "10:30", "type": "break"},
        ],
        "holidays": [],
    }

@pytest_asyncio.fixture
async def scheduled_doctor(client, doctor, weekly_hours):
    response = await client.put(
        f"/api/v1/schedules/{doctor.profile.id}", json=weekly_hours, headers=doctor.headers
    )
    assert response.status_code == 200, response.text
    return doctor
