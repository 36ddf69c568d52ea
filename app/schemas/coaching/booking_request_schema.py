from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from datetime import datetime

"""
Modelos de entrada y salida de las APIs de solicitudes de coaching.
Las horas de las contrapropuestas llegan como texto ISO y se validan en el servicio.
"""

class BookingRequestCreate(BaseModel):
    tutor_id: Optional[int] = None
    tutor_type: str = "sole_tutor"
    topic: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    proposed_start_time: Optional[str] = None
    proposed_end_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    student_note: Optional[str] = None


class TutorNoteRequest(BaseModel):
    tutor_note: Optional[str] = None


class StudentNoteRequest(BaseModel):
    student_note: Optional[str] = None


class CounterProposalRequest(BaseModel):
    counter_start_time: Optional[str] = None
    counter_end_time: Optional[str] = None
    tutor_note: Optional[str] = None


class BookingRequestData(BaseModel):
    id: int
    student_id: int
    tutor_id: int
    tutor_type: str
    status: str
    topic: str
    description: Optional[str] = None
    category: Optional[str] = None
    proposed_start_time: datetime
    proposed_end_time: datetime
    proposed_duration_minutes: int
    is_from_availability: bool
    counter_proposed_start_time: Optional[datetime] = None
    counter_proposed_end_time: Optional[datetime] = None
    counter_proposed_duration_minutes: Optional[int] = None
    hourly_rate: float
    estimated_price: float
    final_price: Optional[float] = None
    currency: str
    accepted_by: Optional[str] = None
    student_note: Optional[str] = None
    tutor_note: Optional[str] = None
    session_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaginationData(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class BookingRequestListData(BaseModel):
    bookings: List[BookingRequestData]
    pagination: PaginationData


class BookingRequestResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: BookingRequestData


class BookingRequestListResponse(BaseModel):
    success: bool
    data: BookingRequestListData
