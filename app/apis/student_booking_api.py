from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.apis.deps import get_db, get_current_student_id
from app.schemas.coaching.booking_request_schema import (
    BookingRequestCreate, StudentNoteRequest,
    BookingRequestData, BookingRequestResponse, BookingRequestListResponse
)
from app.services.coaching.booking_request_service import (
    create_booking_request,
    list_student_booking_requests,
    cancel_booking_request
)
from app.services.coaching.booking_negotiation_service import (
    accept_counter_proposal,
    decline_counter_proposal
)

router = APIRouter()


@router.post("/booking-request/", response_model=BookingRequestResponse, status_code=201)
async def create_booking(
    request: BookingRequestCreate,
    db: AsyncSession = Depends(get_db),
    student_id: int = Depends(get_current_student_id)
):
    """
    Enviar una solicitud de coaching a un tutor con el horario propuesto
    """
    booking = await create_booking_request(db, student_id, request.model_dump())
    return {
        "success": True,
        "message": "Booking request sent. The tutor has 48 hours to respond.",
        "data": BookingRequestData.model_validate(booking)
    }


@router.get("/my-booking-requests/", response_model=BookingRequestListResponse)
async def my_booking_requests(
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    student_id: int = Depends(get_current_student_id)
):
    result = await list_student_booking_requests(db, student_id, status=status, page=page, limit=limit)
    return {
        "success": True,
        "data": result
    }


@router.post("/booking-request/{request_id}/cancel/", response_model=BookingRequestResponse)
async def cancel_booking(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    student_id: int = Depends(get_current_student_id)
):
    booking = await cancel_booking_request(db, student_id, request_id)
    return {
        "success": True,
        "message": "Booking request cancelled",
        "data": BookingRequestData.model_validate(booking)
    }


@router.post("/booking-request/{request_id}/accept-counter/", response_model=BookingRequestResponse)
async def accept_counter(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    student_id: int = Depends(get_current_student_id)
):
    """
    Aceptar el horario que propuso el tutor. El precio final queda fijado.
    """
    booking = await accept_counter_proposal(db, student_id, request_id)
    return {
        "success": True,
        "message": "Counter-proposal accepted",
        "data": BookingRequestData.model_validate(booking)
    }


@router.post("/booking-request/{request_id}/decline-counter/", response_model=BookingRequestResponse)
async def decline_counter(
    request_id: int,
    request: Optional[StudentNoteRequest] = None,
    db: AsyncSession = Depends(get_db),
    student_id: int = Depends(get_current_student_id)
):
    booking = await decline_counter_proposal(
        db, student_id, request_id,
        student_note=request.student_note if request else None
    )
    return {
        "success": True,
        "message": "Counter-proposal declined",
        "data": BookingRequestData.model_validate(booking)
    }
