from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.deps import get_current_admin, require_roles
from app.db.models import User
from app.db.session import get_session
from app.schemas.patient import PatientUpdate
from app.schemas.user import PatientAccount
from app.services.patient_service import PatientService

router = APIRouter()

async def get_patient_service(session: AsyncSession = Depends(get_session)) -> PatientService:
    return PatientService(session)

@router.put("/profile", response_model=PatientAccount)
async def update_own_profile(
    data: PatientUpdate,
    current_user: User = Depends(require_roles("patient")),
    service: PatientService = Depends(get_patient_service),
):
    return await service.update_profile(current_user, data)

@router.get("/{patient_id}", response_model=PatientAccount)
async def read_patient(
    patient_id: UUID,
    current_user: User = Depends(require_roles("patient", "admin")),
    service: PatientService = Depends(get_patient_service),
):
    return await service.get_patient(patient_id, current_user)

@router.put("/{patient_id}", response_model=PatientAccount)
async def update_patient(
    patient_id: UUID,
    data: PatientUpdate,
    current_user: User = Depends(require_roles("patient", "admin")),
    service: PatientService = Depends(get_patient_service),
):
    return await service.update_patient(patient_id, current_user, data)

@router.put("/{patient_id}/deactivate", response_model=PatientAccount)
async def deactivate_patient(
    patient_id: UUID,
    admin: User = Depends(get_current_admin),
    service: PatientService = Depends(get_patient_service),
):
    return await service.deactivate(patient_id)
