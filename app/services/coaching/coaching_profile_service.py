from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from typing import Any, Dict, Optional
import logging

from app.configs.settings import settings
from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.services.coaching.pricing_service import get_decimal
from app.services.validation.exception import ValidationException, unexpected_exception

logger = logging.getLogger(__name__)

MIN_DURATION_FLOOR = 15
MAX_DURATION_FLOOR = 30

PROFILE_FIELDS = (
    "hourly_rate",
    "currency",
    "bio",
    "specializations",
    "is_accepting_bookings",
    "min_duration_minutes",
    "max_duration_minutes",
    "timezone",
)

# ==================== VALIDACIONES ====================

def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_profile_data(profile: TutorCoachingProfile, profile_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida todos los campos enviados y devuelve los valores ya normalizados.
    No toca el perfil: si algo falla, el registro queda intacto.
    """
    changes = {}

    if "hourly_rate" in profile_data:
        rate = get_decimal(profile_data["hourly_rate"])
        if rate is None or rate < 0:
            raise ValidationException("Hourly rate must be a non-negative number")
        changes["hourly_rate"] = rate

    if "currency" in profile_data:
        currency = profile_data["currency"]
        if not isinstance(currency, str) or not currency.strip():
            raise ValidationException("Currency must be a non-empty string")
        changes["currency"] = currency.strip().upper()

    if "bio" in profile_data:
        changes["bio"] = profile_data["bio"]

    if "specializations" in profile_data:
        specializations = profile_data["specializations"]
        if specializations is not None:
            if not isinstance(specializations, (list, tuple, set)):
                raise ValidationException("Specializations must be an array")
            if not all(isinstance(item, str) for item in specializations):
                raise ValidationException("Specializations must be an array of strings")
            # Sin duplicados, conservando el orden
            specializations = list(dict.fromkeys(item.strip() for item in specializations if item.strip()))
        changes["specializations"] = specializations

    if "is_accepting_bookings" in profile_data:
        is_accepting_bookings = profile_data["is_accepting_bookings"]
        if not isinstance(is_accepting_bookings, bool):
            raise ValidationException("is_accepting_bookings must be true or false")
        changes["is_accepting_bookings"] = is_accepting_bookings

    if "min_duration_minutes" in profile_data:
        min_duration = profile_data["min_duration_minutes"]
        if not _is_integer(min_duration) or min_duration < MIN_DURATION_FLOOR:
            raise ValidationException(f"Minimum duration must be at least {MIN_DURATION_FLOOR} minutes")
        changes["min_duration_minutes"] = min_duration

    if "max_duration_minutes" in profile_data:
        max_duration = profile_data["max_duration_minutes"]
        if not _is_integer(max_duration) or max_duration < MAX_DURATION_FLOOR:
            raise ValidationException(f"Maximum duration must be at least {MAX_DURATION_FLOOR} minutes")
        changes["max_duration_minutes"] = max_duration

    # Se compara con el valor guardado del campo que no vino en esta petición
    final_min = changes.get("min_duration_minutes", profile.min_duration_minutes)
    final_max = changes.get("max_duration_minutes", profile.max_duration_minutes)
    if final_min and final_max and final_min > final_max:
        raise ValidationException("Minimum duration cannot be greater than maximum duration")

    if "timezone" in profile_data:
        changes["timezone"] = profile_data["timezone"]

    return changes

# ==================== FUNCIONES PRINCIPALES ====================

async def get_or_create_coaching_profile(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str
) -> TutorCoachingProfile:
    """
    Devuelve el perfil de coaching del tutor o lo crea con valores por defecto.
    Si dos peticiones lo crean a la vez, la restricción única
    (tutor_id, tutor_type) deja pasar una y la otra relee la fila ganadora.
    """
    query = select(TutorCoachingProfile).where(
        TutorCoachingProfile.tutor_id == tutor_id,
        TutorCoachingProfile.tutor_type == tutor_type
    )

    try:
        result = await db.execute(query)
        profile = result.scalar_one_or_none()
        if profile:
            return profile

        profile = TutorCoachingProfile(
            tutor_id=tutor_id,
            tutor_type=tutor_type,
            currency=settings.DEFAULT_CURRENCY,
            timezone=settings.DEFAULT_TIMEZONE
        )
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            result = await db.execute(query)
            return result.scalar_one()

        await db.refresh(profile)
        logger.info(f"✅ Perfil de coaching creado para tutor {tutor_type}:{tutor_id}")
        return profile

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error obteniendo perfil de coaching: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def update_coaching_profile(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    profile_data: Dict[str, Any]
) -> TutorCoachingProfile:
    """
    Actualiza solo los campos enviados. Todo se valida antes de escribir.
    """
    profile = await get_or_create_coaching_profile(db, tutor_id, tutor_type)

    try:
        unknown = set(profile_data) - set(PROFILE_FIELDS)
        if unknown:
            raise ValidationException(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        changes = _validate_profile_data(profile, profile_data)
        for field, value in changes.items():
            setattr(profile, field, value)

        await db.commit()
        await db.refresh(profile)

        logger.info(f"✅ Perfil de coaching actualizado para tutor {tutor_type}:{tutor_id} ({', '.join(changes) or 'sin cambios'})")
        return profile

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error actualizando perfil de coaching: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def get_profile_timezone(db: AsyncSession, tutor_id: int, tutor_type: str) -> Optional[str]:
    """Zona horaria del perfil sin crearlo (None si el tutor no tiene perfil)."""
    result = await db.execute(
        select(TutorCoachingProfile.timezone).where(
            TutorCoachingProfile.tutor_id == tutor_id,
            TutorCoachingProfile.tutor_type == tutor_type
        )
    )
    return result.scalar_one_or_none()
