from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import String, cast
from fastapi import HTTPException
from typing import Any, Dict, Optional
import json
import logging

from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.models.coaching.constants import TutorType
from app.services.coaching.availability_service import get_tutor_availability
from app.services.coaching.pricing_service import get_decimal
from app.services.utils.pagination_service import PaginationService
from app.services.validation.exception import (
    NotFoundException, ForbiddenException, ValidationException, unexpected_exception
)

logger = logging.getLogger(__name__)


def _get_price_bound(value: Any, field: str):
    if value is None or value == "":
        return None
    price = get_decimal(value)
    if price is None or price < 0:
        raise ValidationException(f"{field} must be a non-negative number")
    return price


async def browse_coaching_tutors(
    db: AsyncSession,
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Any = None,
    max_price: Any = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None
) -> Dict:
    """
    Directorio de tutores que ofrecen coaching: solo perfiles que aceptan
    solicitudes y tienen tarifa mayor que 0.

    - category: debe estar entre las especialidades del perfil
    - search: texto buscado en la bio de coaching
    - min_price / max_price: rango de tarifa por hora
    Orden: más sesiones completadas primero, luego mejor calificación.
    """
    try:
        min_rate = _get_price_bound(min_price, "min_price")
        max_rate = _get_price_bound(max_price, "max_price")

        query = select(TutorCoachingProfile).where(
            TutorCoachingProfile.is_accepting_bookings == True,
            TutorCoachingProfile.hourly_rate > 0
        )
        if min_rate is not None:
            query = query.where(TutorCoachingProfile.hourly_rate >= min_rate)
        if max_rate is not None:
            query = query.where(TutorCoachingProfile.hourly_rate <= max_rate)

        if category and category.strip():
            # La lista se guarda como JSON; se busca el elemento con sus comillas
            query = query.where(
                cast(TutorCoachingProfile.specializations, String).contains(
                    json.dumps(category.strip()), autoescape=True
                )
            )

        if search and search.strip():
            query = query.where(TutorCoachingProfile.bio.ilike(f"%{search.strip()}%"))

        query = query.order_by(
            TutorCoachingProfile.total_sessions_completed.desc(),
            TutorCoachingProfile.average_rating.desc(),
            TutorCoachingProfile.id.asc()
        )

        paginated_data = await PaginationService.get_paginated_data(db, query, page, limit)

        return {
            "tutors": paginated_data["items"],
            "pagination": {
                "total": paginated_data["total"],
                "page": paginated_data["page"],
                "limit": paginated_data["limit"],
                "total_pages": paginated_data["total_pages"],
            }
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error listando tutores de coaching: {str(e)}")
        await unexpected_exception()


async def get_tutor_coaching_details(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: Optional[str] = None
) -> Dict:
    """Perfil de coaching público de un tutor junto con sus bloques activos."""
    try:
        tutor_type = tutor_type or TutorType.SOLE_TUTOR.value
        if tutor_type not in (TutorType.SOLE_TUTOR.value, TutorType.ORGANIZATION.value):
            raise ValidationException("tutor_type must be sole_tutor or organization")

        result = await db.execute(
            select(TutorCoachingProfile).where(
                TutorCoachingProfile.tutor_id == tutor_id,
                TutorCoachingProfile.tutor_type == tutor_type
            )
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise NotFoundException("Tutor coaching profile not found")

        if not profile.is_accepting_bookings:
            raise ForbiddenException("This tutor is not currently accepting bookings")

        availability = await get_tutor_availability(db, tutor_id, tutor_type)

        return {
            "profile": profile,
            "recurring": availability["recurring"],
            "specific": availability["specific"],
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error obteniendo detalle de coaching del tutor {tutor_id}: {str(e)}")
        await unexpected_exception()
