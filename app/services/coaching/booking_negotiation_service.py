from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.exc import StaleDataError
from fastapi import HTTPException
from datetime import datetime
from typing import Dict, Optional, Union
import logging

from app.configs.settings import settings
from app.models.coaching.booking_request import CoachingBookingRequest
from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.models.coaching.constants import BookingStatus, AcceptedBy
from app.services.coaching.booking_expiry_service import (
    ExpiryCheck, check_booking_expiry, handle_just_expired, expire_overdue_requests
)
from app.services.coaching.pricing_service import get_session_price
from app.services.utils.datetime_service import (
    get_utc_now, get_parsed_datetime, get_duration_minutes, get_expiry_from_now
)
from app.services.utils.pagination_service import PaginationService
from app.services.validation.exception import (
    NotFoundException, ValidationException, InvalidStateTransitionException,
    ConflictException, unexpected_exception
)

logger = logging.getLogger(__name__)


def _tutor_scope(tutor_id: int, tutor_type: str) -> tuple:
    return (
        CoachingBookingRequest.tutor_id == tutor_id,
        CoachingBookingRequest.tutor_type == tutor_type,
    )


def _validate_status_filter(status: Optional[str]) -> None:
    if status and status not in {s.value for s in BookingStatus}:
        raise ValidationException(f"Invalid status filter: {status}")


async def _get_tutor_booking_or_404(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    request_id: int
) -> CoachingBookingRequest:
    result = await db.execute(
        select(CoachingBookingRequest).where(
            CoachingBookingRequest.id == request_id,
            *_tutor_scope(tutor_id, tutor_type)
        ).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundException("Booking request not found")
    return booking


async def _get_student_booking_or_404(
    db: AsyncSession,
    student_id: int,
    request_id: int
) -> CoachingBookingRequest:
    result = await db.execute(
        select(CoachingBookingRequest).where(
            CoachingBookingRequest.id == request_id,
            CoachingBookingRequest.student_id == student_id
        ).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if not booking:
        raise NotFoundException("Booking request not found")
    return booking


async def _commit_transition(db: AsyncSession, booking: CoachingBookingRequest) -> CoachingBookingRequest:
    """
    Confirma un cambio de estado. La columna `version` hace que el UPDATE
    falle si otra petición modificó la fila entre la lectura y la escritura.
    """
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ConflictException("Booking request was modified by another request. Please reload and try again.")
    await db.refresh(booking)
    return booking


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    return note or None


# ==================== CONSULTAS DEL TUTOR ====================

async def list_tutor_booking_requests(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    status: Optional[str] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None
) -> Dict:
    """
    Solicitudes de coaching del tutor, de la más nueva a la más antigua.
    Antes de leer se expiran las solicitudes vencidas del tutor.
    """
    try:
        _validate_status_filter(status)
        await expire_overdue_requests(db, *_tutor_scope(tutor_id, tutor_type))

        query = select(CoachingBookingRequest).where(*_tutor_scope(tutor_id, tutor_type))
        if status:
            query = query.where(CoachingBookingRequest.status == status)
        query = query.order_by(CoachingBookingRequest.created_at.desc(), CoachingBookingRequest.id.desc())
        # la expiración masiva no sincroniza la sesión
        query = query.execution_options(populate_existing=True)

        paginated_data = await PaginationService.get_paginated_data(db, query, page, limit)

        return {
            "bookings": paginated_data["items"],
            "pagination": {
                "total": paginated_data["total"],
                "page": paginated_data["page"],
                "limit": paginated_data["limit"],
                "total_pages": paginated_data["total_pages"],
            }
        }

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error obteniendo solicitudes de coaching del tutor: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def get_tutor_booking_request_detail(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    request_id: int
) -> CoachingBookingRequest:
    try:
        await expire_overdue_requests(
            db,
            CoachingBookingRequest.id == request_id,
            *_tutor_scope(tutor_id, tutor_type)
        )
        return await _get_tutor_booking_or_404(db, tutor_id, tutor_type, request_id)

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error obteniendo detalle de solicitud {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


# ==================== TRANSICIONES DEL TUTOR ====================

async def accept_booking_request(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    request_id: int,
    tutor_note: Optional[str] = None
) -> CoachingBookingRequest:
    """
    El tutor acepta la hora propuesta por el estudiante.
    Solo desde `pending`; fija el precio final con la duración propuesta.
    """
    try:
        booking = await _get_tutor_booking_or_404(db, tutor_id, tutor_type, request_id)

        if booking.status != BookingStatus.PENDING.value:
            raise InvalidStateTransitionException(
                f"Cannot accept a booking that is {booking.status}. Only pending requests can be accepted."
            )

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This booking request has expired")

        if booking.proposed_start_time <= now:
            raise ValidationException("The proposed time has already passed")

        booking.final_price = get_session_price(booking.hourly_rate, booking.proposed_duration_minutes)
        booking.status = BookingStatus.ACCEPTED.value
        booking.accepted_by = AcceptedBy.TUTOR.value
        booking.accepted_at = now
        note = _clean_note(tutor_note)
        if note:
            booking.tutor_note = note

        booking = await _commit_transition(db, booking)
        logger.info(f"✅ Solicitud {booking.id} aceptada por tutor {tutor_type}:{tutor_id} ({booking.final_price} {booking.currency})")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error aceptando solicitud {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def decline_booking_request(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    request_id: int,
    tutor_note: Optional[str] = None
) -> CoachingBookingRequest:
    """El tutor rechaza una solicitud pendiente o retira su contrapropuesta."""
    try:
        booking = await _get_tutor_booking_or_404(db, tutor_id, tutor_type, request_id)

        if booking.status not in (BookingStatus.PENDING.value, BookingStatus.COUNTER_PROPOSED.value):
            raise InvalidStateTransitionException(f"Cannot decline a booking that is {booking.status}")

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This booking request has expired")

        booking.status = BookingStatus.DECLINED.value
        booking.declined_at = now
        note = _clean_note(tutor_note)
        if note:
            booking.tutor_note = note

        booking = await _commit_transition(db, booking)
        logger.info(f"❌ Solicitud {booking.id} rechazada por tutor {tutor_type}:{tutor_id}")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error rechazando solicitud {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def counter_propose_booking(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    request_id: int,
    counter_start_time: Union[str, datetime, None],
    counter_end_time: Union[str, datetime, None],
    tutor_note: Optional[str] = None
) -> CoachingBookingRequest:
    """
    El tutor propone otro horario. La duración debe respetar los límites de su
    perfil (si existe), se recalcula el precio estimado y el estudiante recibe
    una nueva ventana de respuesta.
    """
    try:
        if not counter_start_time or not counter_end_time:
            raise ValidationException("counter_start_time and counter_end_time are required")

        booking = await _get_tutor_booking_or_404(db, tutor_id, tutor_type, request_id)

        if booking.status != BookingStatus.PENDING.value:
            raise InvalidStateTransitionException(
                f"Cannot counter-propose on a booking that is {booking.status}. "
                f"Only pending requests can receive a counter-proposal."
            )

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This booking request has expired")

        start_time = get_parsed_datetime(counter_start_time)
        end_time = get_parsed_datetime(counter_end_time)

        if start_time is None or end_time is None:
            raise ValidationException("Invalid date format for counter-proposed times")

        if start_time <= now:
            raise ValidationException("Counter-proposed start time must be in the future")

        if end_time <= start_time:
            raise ValidationException("Counter-proposed end time must be after start time")

        counter_duration = get_duration_minutes(start_time, end_time)

        profile_result = await db.execute(
            select(TutorCoachingProfile).where(
                TutorCoachingProfile.tutor_id == tutor_id,
                TutorCoachingProfile.tutor_type == tutor_type
            )
        )
        profile = profile_result.scalar_one_or_none()

        if profile:
            if counter_duration < profile.min_duration_minutes:
                raise ValidationException(
                    f"Counter-proposed duration ({counter_duration}min) is below your minimum ({profile.min_duration_minutes}min)"
                )
            if counter_duration > profile.max_duration_minutes:
                raise ValidationException(
                    f"Counter-proposed duration ({counter_duration}min) exceeds your maximum ({profile.max_duration_minutes}min)"
                )

        booking.counter_proposed_start_time = start_time
        booking.counter_proposed_end_time = end_time
        booking.counter_proposed_duration_minutes = counter_duration
        booking.estimated_price = get_session_price(booking.hourly_rate, counter_duration)
        booking.status = BookingStatus.COUNTER_PROPOSED.value
        # Nueva ventana para que responda el estudiante
        booking.expires_at = get_expiry_from_now(settings.BOOKING_REQUEST_EXPIRY_HOURS)
        note = _clean_note(tutor_note)
        if note:
            booking.tutor_note = note

        booking = await _commit_transition(db, booking)
        logger.info(f"🔁 Contrapropuesta enviada en solicitud {booking.id} ({counter_duration}min)")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error enviando contrapropuesta en solicitud {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


# ==================== RESPUESTA DEL ESTUDIANTE ====================

async def accept_counter_proposal(
    db: AsyncSession,
    student_id: int,
    request_id: int
) -> CoachingBookingRequest:
    """El estudiante acepta la contrapropuesta; el precio final sale de la duración contrapropuesta."""
    try:
        booking = await _get_student_booking_or_404(db, student_id, request_id)

        if booking.status != BookingStatus.COUNTER_PROPOSED.value:
            raise InvalidStateTransitionException(
                f"Cannot accept counter-proposal on a booking that is {booking.status}"
            )

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This counter-proposal has expired")

        if booking.counter_proposed_start_time <= now:
            raise ValidationException("The counter-proposed time has already passed")

        booking.final_price = get_session_price(booking.hourly_rate, booking.counter_proposed_duration_minutes)
        booking.status = BookingStatus.ACCEPTED.value
        booking.accepted_by = AcceptedBy.STUDENT.value
        booking.accepted_at = now

        booking = await _commit_transition(db, booking)
        logger.info(f"✅ Contrapropuesta de solicitud {booking.id} aceptada por estudiante {student_id}")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error aceptando contrapropuesta {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def decline_counter_proposal(
    db: AsyncSession,
    student_id: int,
    request_id: int,
    student_note: Optional[str] = None
) -> CoachingBookingRequest:
    try:
        booking = await _get_student_booking_or_404(db, student_id, request_id)

        if booking.status != BookingStatus.COUNTER_PROPOSED.value:
            raise InvalidStateTransitionException(
                f"Cannot decline counter-proposal on a booking that is {booking.status}"
            )

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This counter-proposal has expired")

        booking.status = BookingStatus.DECLINED.value
        booking.declined_at = now
        note = _clean_note(student_note)
        if note:
            booking.student_note = note

        booking = await _commit_transition(db, booking)
        logger.info(f"❌ Contrapropuesta de solicitud {booking.id} rechazada por estudiante {student_id}")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error rechazando contrapropuesta {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()
