from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

"""
Modelo que representa la estructura de datos recibida y enviada en las APIs del perfil de coaching
"""

class CoachingProfileUpdateRequest(BaseModel):
    hourly_rate: Optional[Decimal] = None
    currency: Optional[str] = None
    bio: Optional[str] = None
    specializations: Optional[List[str]] = None
    is_accepting_bookings: Optional[bool] = None
    min_duration_minutes: Optional[int] = None
    max_duration_minutes: Optional[int] = None
    timezone: Optional[str] = None


class CoachingProfileData(BaseModel):
    id: int
    tutor_id: int
    tutor_type: str
    hourly_rate: float
    currency: str
    bio: Optional[str] = None
    specializations: Optional[List[str]] = None
    is_accepting_bookings: bool
    min_duration_minutes: int
    max_duration_minutes: int
    timezone: Optional[str] = None
    total_sessions_completed: int
    average_rating: Optional[float] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CoachingProfileResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: CoachingProfileData
