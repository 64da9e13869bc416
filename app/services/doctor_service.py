import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from app.core.exceptions import ConflictError, NotFoundError
from app.core.utils import utcnow
from app.db.models import Doctor, User
from app.schemas.doctor import DoctorCreate, DoctorResponse, RegistrationStatus
from app.services.notification_service import NotificationService, NotificationType

logger = logging.getLogger("mbote.doctors")

class DoctorService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.notifications = NotificationService(session)

    async def create_doctor(self, data: DoctorCreate) -> DoctorResponse:
        stmt = select(User).where(User.phone == data.phone)
        if (await self.session.execute(stmt)).scalars().first():
            raise ConflictError("An account already exists for this phone number")

        stmt = select(Doctor).where(Doctor.license_number == data.license_number)
        if (await self.session.execute(stmt)).scalars().first():
            raise ConflictError("A doctor with this license number already exists")

        user = User(
            role="doctor",
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            email=data.email,
        )
        self.session.add(user)
        await self.session.flush()

        doctor = Doctor(
            user_id=user.id,
            specialization=data.specialization,
            license_number=data.license_number,
            consultation_fee=data.consultation_fee,
            languages=data.languages,
            city=data.city,
        )
        self.session.add(doctor)

        self.notifications.enqueue(
            NotificationType.DOCTOR_ACCOUNT_CREATION,
            {"phone": user.phone, "email": user.email},
            {"doctor_name": user.full_name},
        )
        await self.session.commit()

        logger.info("Created doctor %s (user %s)", doctor.id, user.id)
        return DoctorResponse.from_models(doctor, user)

    async def get_doctor_with_user(self, doctor_id: UUID) -> Tuple[Doctor, User]:
        stmt = select(Doctor, User).join(User, User.id == Doctor.user_id).where(Doctor.id == doctor_id)
        row = (await self.session.execute(stmt)).first()
        if not row:
            raise NotFoundError("Doctor not found")
        return row[0], row[1]

    async def get_doctor_by_user(self, user_id: UUID) -> Doctor | None:
        stmt = select(Doctor).where(Doctor.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_doctor(self, doctor_id: UUID) -> DoctorResponse:
        doctor, user = await self.get_doctor_with_user(doctor_id)
        return DoctorResponse.from_models(doctor, user)

    async def get_doctors(
        self,
        specialization: Optional[str] = None,
        city: Optional[str] = None,
        search: Optional[str] = None,
        registration_status: Optional[RegistrationStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[DoctorResponse]:
        query = select(Doctor, User).join(User, User.id == Doctor.user_id).where(User.is_active == True)
        if specialization:
            query = query.where(Doctor.specialization == specialization)
        if city:
            query = query.where(Doctor.city == city)
        if registration_status:
            query = query.where(Doctor.registration_status == registration_status.value)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern)))
        query = query.order_by(User.last_name, User.first_name).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [DoctorResponse.from_models(doctor, user) for doctor, user in result.all()]

    async def approve(self, doctor_id: UUID, admin: User) -> DoctorResponse:
        doctor, user = await self.get_doctor_with_user(doctor_id)
        if doctor.registration_status == RegistrationStatus.APPROVED:
            raise ConflictError("Doctor is already approved")

        doctor.registration_status = RegistrationStatus.APPROVED.value
        doctor.is_verified = True
        doctor.approved_by = admin.id
        doctor.approval_date = utcnow()
        doctor.rejection_reason = None
        self.session.add(doctor)

        self.notifications.enqueue(
            NotificationType.DOCTOR_APPROVED,
            {"phone": user.phone, "email": user.email},
            {"doctor_name": user.full_name},
        )
        await self.session.commit()

        logger.info("Doctor %s approved by %s", doctor.id, admin.id)
        return DoctorResponse.from_models(doctor, user)

    async def reject(self, doctor_id: UUID, reason: str) -> DoctorResponse:
        """Only pending registrations can be rejected; an approved doctor stays approved."""
        doctor, user = await self.get_doctor_with_user(doctor_id)
        if doctor.registration_status != RegistrationStatus.PENDING:
            raise ConflictError(f"Cannot reject a {doctor.registration_status} registration")

        doctor.registration_status = RegistrationStatus.REJECTED.value
        doctor.rejection_reason = reason
        self.session.add(doctor)

        self.notifications.enqueue(
            NotificationType.DOCTOR_REJECTED,
            {"phone": user.phone, "email": user.email},
            {"doctor_name": user.full_name, "reason": reason},
        )
        await self.session.commit()

        logger.info("Doctor %s rejected: %s", doctor.id, reason)
        return DoctorResponse.from_models(doctor, user)
