from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import date

from app.schemas.coaching.booking_request_schema import PaginationData

"""
Modelos de salida del directorio público de tutores de coaching.
Nombre e imagen del tutor viven en el servicio de cuentas y no se incluyen aquí.
"""

class TutorCoachingSummary(BaseModel):
    profile_id: int = Field(validation_alias="id")
    tutor_id: int
    tutor_type: str
    hourly_rate: float
    currency: str
    bio: Optional[str] = None
    specializations: List[str] = Field(default_factory=list)
    min_duration_minutes: int
    max_duration_minutes: int
    timezone: Optional[str] = None
    total_sessions_completed: int
    average_rating: Optional[float] = None

    @field_validator("specializations", mode="before")
    @classmethod
    def validate_specializations(cls, value):
        return value or []

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TutorListData(BaseModel):
    tutors: List[TutorCoachingSummary]
    pagination: PaginationData


class TutorListResponse(BaseModel):
    success: bool
    data: TutorListData


class PublicSlotData(BaseModel):
    id: int
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    start_time: str
    end_time: str
    timezone: str

    model_config = ConfigDict(from_attributes=True)


class PublicAvailabilityData(BaseModel):
    recurring: List[PublicSlotData]
    specific_dates: List[PublicSlotData]


class TutorCoachingDetailData(BaseModel):
    coaching: TutorCoachingSummary
    availability: PublicAvailabilityData


class TutorCoachingDetailResponse(BaseModel):
    success: bool
    data: TutorCoachingDetailData
