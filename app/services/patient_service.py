import logging
from typing import Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.db.models import Patient, User
from app.schemas.patient import PatientUpdate
from app.schemas.user import PatientAccount, build_account

logger = logging.getLogger("mbote.patients")

USER_FIELDS = {"first_name", "last_name", "email"}

class PatientService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _patient_with_user(self, patient_id: UUID) -> Tuple[Patient, User]:
        stmt = select(Patient, User).join(User, User.id == Patient.user_id).where(Patient.id == patient_id)
        row = (await self.session.execute(stmt)).first()
        if not row:
            raise NotFoundError("Patient not found")
        return row[0], row[1]

    @staticmethod
    def _check_access(user: User, owner: User):
        if user.role != "admin" and user.id != owner.id:
            raise PermissionDeniedError("Not allowed to access this patient")

    async def get_patient(self, patient_id: UUID, user: User) -> PatientAccount:
        patient, owner = await self._patient_with_user(patient_id)
        self._check_access(user, owner)
        return build_account(owner, patient)

    async def update_patient(self, patient_id: UUID, user: User, data: PatientUpdate) -> PatientAccount:
        patient, owner = await self._patient_with_user(patient_id)
        self._check_access(user, owner)

        # Only fields present in the request are touched
        for field, value in data.model_dump(exclude_unset=True).items():
            target = owner if field in USER_FIELDS else patient
            setattr(target, field, value)
        self.session.add(owner)
        self.session.add(patient)
        await self.session.commit()

        logger.info("Patient %s updated by %s", patient.id, user.id)
        return build_account(owner, patient)

    async def update_profile(self, user: User, data: PatientUpdate) -> PatientAccount:
        stmt = select(Patient).where(Patient.user_id == user.id)
        patient = (await self.session.execute(stmt)).scalars().first()
        if not patient:
            raise NotFoundError("Patient not found")
        return await self.update_patient(patient.id, user, data)

    async def deactivate(self, patient_id: UUID) -> PatientAccount:
        patient, owner = await self._patient_with_user(patient_id)
        owner.is_active = False
        self.session.add(owner)
        await self.session.commit()

        logger.info("Patient %s deactivated", patient.id)
        return build_account(owner, patient)
