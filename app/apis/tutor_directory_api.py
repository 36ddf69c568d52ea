from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.apis.deps import get_db
from app.schemas.coaching.tutor_directory_schema import (
    TutorListResponse, TutorCoachingDetailResponse
)
from app.services.coaching.tutor_directory_service import (
    browse_coaching_tutors,
    get_tutor_coaching_details
)

router = APIRouter()


@router.get("/", response_model=TutorListResponse)
async def list_coaching_tutors(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None),
    max_price: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Directorio público de tutores que aceptan solicitudes de coaching
    """
    result = await browse_coaching_tutors(
        db,
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        page=page,
        limit=limit
    )
    return {
        "success": True,
        "data": result
    }


@router.get("/{tutor_id}/", response_model=TutorCoachingDetailResponse)
async def get_tutor_coaching(
    tutor_id: int,
    tutor_type: str = Query("sole_tutor"),
    db: AsyncSession = Depends(get_db)
):
    """
    Perfil de coaching de un tutor y sus horarios disponibles
    """
    details = await get_tutor_coaching_details(db, tutor_id, tutor_type)
    return {
        "success": True,
        "data": {
            "coaching": details["profile"],
            "availability": {
                "recurring": details["recurring"],
                "specific_dates": details["specific"],
            }
        }
    }
