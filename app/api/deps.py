from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jwt.exceptions import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from uuid import UUID

from app.core.config import settings
from app.core.redis import RedisClient, get_redis
from app.core.security import decode_access_token
from app.db.models import Doctor, Patient, User
from app.db.session import get_session, get_session_factory
from app.services.notification_service import NotificationGateway, Notifier, get_notification_gateway
from sqlmodel import select

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/verify-otp")

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
    redis_client: RedisClient = Depends(get_redis),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        user_id = UUID(user_id)
    except (PyJWTError, ValueError):
        raise credentials_exception

    # Signed-out tokens are gone from Redis even if the JWT has not expired
    if await redis_client.get_token(token) is None:
        raise credentials_exception

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise credentials_exception
    return user

def require_roles(*roles: str):
    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user
    return checker

get_current_admin = require_roles("admin")

async def get_current_doctor(
    current_user: User = Depends(require_roles("doctor")),
    session: AsyncSession = Depends(get_session),
) -> Doctor:
    stmt = select(Doctor).where(Doctor.user_id == current_user.id)
    doctor = (await session.execute(stmt)).scalars().first()
    if doctor is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Doctor profile not found")
    return doctor

async def get_current_patient(
    current_user: User = Depends(require_roles("patient")),
    session: AsyncSession = Depends(get_session),
) -> Patient:
    stmt = select(Patient).where(Patient.user_id == current_user.id)
    patient = (await session.execute(stmt)).scalars().first()
    if patient is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Patient profile not found")
    return patient

def get_notifier(
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker = Depends(get_session_factory),
    gateway: NotificationGateway = Depends(get_notification_gateway),
) -> Notifier:
    return Notifier(background_tasks, session_factory, gateway)
