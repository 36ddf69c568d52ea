from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime

"""
Bloques de disponibilidad del tutor.
start_time / end_time en formato "HH:MM"; day_of_week 0=domingo ... 6=sábado.
"""

class AvailabilitySlotCreate(BaseModel):
    is_recurring: bool = False
    day_of_week: Optional[int] = None
    specific_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None


class AvailabilityBatchCreate(BaseModel):
    slots: List[AvailabilitySlotCreate] = Field(default_factory=list)


class AvailabilitySlotUpdate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None


class AvailabilityBulkDelete(BaseModel):
    slot_ids: List[int] = Field(default_factory=list)


class AvailabilitySlotData(BaseModel):
    id: int
    tutor_id: int
    tutor_type: str
    is_recurring: bool
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    start_time: str
    end_time: str
    timezone: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AvailabilityListData(BaseModel):
    recurring: List[AvailabilitySlotData]
    specific: List[AvailabilitySlotData]
    total: int


class AvailabilityListResponse(BaseModel):
    success: bool
    data: AvailabilityListData
