from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_notifier, oauth2_scheme
from app.core.redis import RedisClient, get_redis
from app.db.models import User
from app.db.session import get_session
from app.schemas.auth import LoginResponse, MessageResponse, OTPRequest, OTPVerify, PatientRegister
from app.schemas.user import Account
from app.services.auth_service import AuthService
from app.services.notification_service import Notifier

router = APIRouter()

async def get_auth_service(
    session: AsyncSession = Depends(get_session),
    redis_client: RedisClient = Depends(get_redis),
) -> AuthService:
    return AuthService(session, redis_client)

@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: PatientRegister,
    service: AuthService = Depends(get_auth_service),
    notifier: Notifier = Depends(get_notifier),
):
    response = await service.register_patient(data)
    notifier.dispatch(service.notifications.pending_ids)
    return response

@router.post("/request-otp", response_model=MessageResponse)
async def request_otp(
    data: OTPRequest,
    service: AuthService = Depends(get_auth_service),
    notifier: Notifier = Depends(get_notifier),
):
    response = await service.request_otp(data.phone)
    notifier.dispatch(service.notifications.pending_ids)
    return response

@router.post("/verify-otp", response_model=LoginResponse)
async def verify_otp(
    data: OTPVerify,
    service: AuthService = Depends(get_auth_service),
):
    return await service.verify_otp(data.phone, data.otp)

@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(oauth2_scheme),
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return await service.logout(token)

@router.get("/me", response_model=Account)
async def read_me(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return await service.get_account(current_user)
