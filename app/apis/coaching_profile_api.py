from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, get_current_tutor
from app.schemas.coaching.coaching_profile_schema import (
    CoachingProfileUpdateRequest, CoachingProfileResponse, CoachingProfileData
)
from app.services.coaching.coaching_profile_service import (
    get_or_create_coaching_profile, update_coaching_profile
)
from app.services.coaching.tutor_identity_service import TutorIdentity

router = APIRouter()


@router.get("/profile/", response_model=CoachingProfileResponse)
async def get_coaching_profile_route(
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Obtener el perfil de coaching del tutor (se crea con valores por defecto si no existe)
    """
    profile = await get_or_create_coaching_profile(db, tutor.tutor_id, tutor.tutor_type)
    return {
        "success": True,
        "data": CoachingProfileData.model_validate(profile)
    }


@router.put("/profile/", response_model=CoachingProfileResponse)
async def update_coaching_profile_route(
    request: CoachingProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Actualizar tarifa, moneda, bio, especialidades, duración mínima/máxima y zona horaria.
    Solo se modifican los campos enviados.
    """
    profile = await update_coaching_profile(
        db,
        tutor.tutor_id,
        tutor.tutor_type,
        request.model_dump(exclude_unset=True)
    )
    return {
        "success": True,
        "message": "Coaching profile updated successfully",
        "data": CoachingProfileData.model_validate(profile)
    }
