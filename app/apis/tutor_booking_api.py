from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.apis.deps import get_db, get_current_tutor
from app.schemas.coaching.booking_request_schema import (
    TutorNoteRequest, CounterProposalRequest,
    BookingRequestData, BookingRequestResponse, BookingRequestListResponse
)
from app.services.coaching.booking_negotiation_service import (
    list_tutor_booking_requests,
    get_tutor_booking_request_detail,
    accept_booking_request,
    decline_booking_request,
    counter_propose_booking
)
from app.services.coaching.tutor_identity_service import TutorIdentity

router = APIRouter()


@router.get("/", response_model=BookingRequestListResponse)
async def list_booking_requests(
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Solicitudes recibidas por el tutor, de la más nueva a la más antigua.
    Las vencidas se marcan como expiradas antes de listar.
    """
    result = await list_tutor_booking_requests(
        db, tutor.tutor_id, tutor.tutor_type, status=status, page=page, limit=limit
    )
    return {
        "success": True,
        "data": result
    }


@router.get("/{request_id}/", response_model=BookingRequestResponse)
async def get_booking_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    booking = await get_tutor_booking_request_detail(db, tutor.tutor_id, tutor.tutor_type, request_id)
    return {
        "success": True,
        "data": BookingRequestData.model_validate(booking)
    }


@router.post("/{request_id}/accept/", response_model=BookingRequestResponse)
async def accept_booking(
    request_id: int,
    request: Optional[TutorNoteRequest] = None,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Aceptar la solicitud pendiente. El precio final queda fijado al aceptar.
    """
    booking = await accept_booking_request(
        db, tutor.tutor_id, tutor.tutor_type, request_id,
        tutor_note=request.tutor_note if request else None
    )
    return {
        "success": True,
        "message": "Booking request accepted",
        "data": BookingRequestData.model_validate(booking)
    }


@router.post("/{request_id}/decline/", response_model=BookingRequestResponse)
async def decline_booking(
    request_id: int,
    request: Optional[TutorNoteRequest] = None,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    booking = await decline_booking_request(
        db, tutor.tutor_id, tutor.tutor_type, request_id,
        tutor_note=request.tutor_note if request else None
    )
    return {
        "success": True,
        "message": "Booking request declined",
        "data": BookingRequestData.model_validate(booking)
    }


@router.post("/{request_id}/counter/", response_model=BookingRequestResponse)
async def counter_propose(
    request_id: int,
    request: CounterProposalRequest,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Proponer otro horario al estudiante. Reinicia el plazo de expiración de 48h.
    """
    booking = await counter_propose_booking(
        db, tutor.tutor_id, tutor.tutor_type, request_id,
        request.counter_start_time,
        request.counter_end_time,
        tutor_note=request.tutor_note
    )
    return {
        "success": True,
        "message": "Counter-proposal sent to student",
        "data": BookingRequestData.model_validate(booking)
    }
