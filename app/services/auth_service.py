import json
import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError
from app.core.redis import RedisClient
from app.core.security import create_access_token
from app.db.models import Doctor, Patient, User
from app.schemas.auth import LoginResponse, MessageResponse, PatientRegister
from app.schemas.user import build_account
from app.services.notification_service import NotificationService, NotificationType
from app.services.otp_service import OTPService

logger = logging.getLogger("mbote.auth")

OTP_NOTIFICATIONS = {
    "patient": NotificationType.PATIENT_OTP_VERIFICATION,
    "doctor": NotificationType.DOCTOR_OTP_VERIFICATION,
    "admin": NotificationType.ADMIN_OTP_VERIFICATION,
}

class AuthService:
    def __init__(self, session: AsyncSession, redis_client: RedisClient):
        self.session = session
        self.redis_client = redis_client
        self.otp = OTPService(redis_client)
        self.notifications = NotificationService(session)

    async def get_user_by_phone(self, phone: str) -> User | None:
        stmt = select(User).where(User.phone == phone)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def register_patient(self, data: PatientRegister) -> MessageResponse:
        if await self.get_user_by_phone(data.phone):
            raise ConflictError("An account already exists for this phone number")

        user = User(
            role="patient",
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            email=data.email,
        )
        self.session.add(user)
        await self.session.flush()

        patient = Patient(
            user_id=user.id,
            date_of_birth=data.date_of_birth,
            gender=data.gender,
            address=data.address,
        )
        self.session.add(patient)

        code = await self.otp.issue(user.phone)
        self.notifications.enqueue(
            NotificationType.PATIENT_ACCOUNT_CREATION,
            {"phone": user.phone, "email": user.email},
            {"otp": code},
        )
        await self.session.commit()

        logger.info("Registered patient %s", user.id)
        return MessageResponse(message="Account created, verification code sent")

    async def request_otp(self, phone: str) -> MessageResponse:
        user = await self.get_user_by_phone(phone)
        if not user:
            raise NotFoundError("No account for this phone number")
        if not user.is_active:
            raise PermissionDeniedError("Account is disabled")

        code = await self.otp.issue(user.phone)
        self.notifications.enqueue(
            OTP_NOTIFICATIONS[user.role],
            {"phone": user.phone, "email": user.email},
            {"otp": code},
        )
        await self.session.commit()
        return MessageResponse(message="Verification code sent")

    async def verify_otp(self, phone: str, otp: str) -> LoginResponse:
        user = await self.get_user_by_phone(phone)
        if not user:
            raise NotFoundError("No account for this phone number")

        if not await self.otp.verify(phone, otp):
            raise AuthenticationError("Invalid or expired verification code")

        if not user.phone_verified:
            user.phone_verified = True
            self.session.add(user)
            await self.session.commit()

        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(user.id), "role": user.role}, expires_delta=access_token_expires
        )

        # Sessions are revocable by deleting the Redis key
        token_data = {
            "user_id": str(user.id),
            "role": user.role,
        }
        await self.redis_client.set_token(
            access_token,
            json.dumps(token_data),
            settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )

        logger.info("User %s signed in as %s", user.id, user.role)
        return LoginResponse(
            access_token=access_token,
            token_type="bearer",
            account=await self.get_account(user),
        )

    async def logout(self, token: str) -> MessageResponse:
        await self.redis_client.delete_token(token)
        return MessageResponse(message="Signed out")

    async def get_account(self, user: User):
        profile = None
        if user.role == "patient":
            result = await self.session.execute(select(Patient).where(Patient.user_id == user.id))
            profile = result.scalars().first()
        elif user.role == "doctor":
            result = await self.session.execute(select(Doctor).where(Doctor.user_id == user.id))
            profile = result.scalars().first()
        return build_account(user, profile)
