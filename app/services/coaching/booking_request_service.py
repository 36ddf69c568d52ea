from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, or_
from sqlalchemy.orm.exc import StaleDataError
from fastapi import HTTPException
from typing import Dict, Optional
import logging

from app.configs.settings import settings
from app.models.coaching.availability import TutorAvailability
from app.models.coaching.booking_request import CoachingBookingRequest
from app.models.coaching.coaching_profile import TutorCoachingProfile
from app.models.coaching.constants import (
    BookingStatus, TutorType, ACTIVE_BOOKING_STATUSES, BOOKING_CATEGORIES
)
from app.services.coaching.booking_expiry_service import (
    ExpiryCheck, check_booking_expiry, handle_just_expired, expire_overdue_requests
)
from app.services.coaching.pricing_service import get_session_price
from app.services.utils.datetime_service import (
    get_utc_now, get_parsed_datetime, get_duration_minutes, get_expiry_from_now,
    get_sunday_based_weekday
)
from app.services.utils.pagination_service import PaginationService
from app.services.validation.exception import (
    NotFoundException, ValidationException, ForbiddenException, ConflictException,
    InvalidStateTransitionException, unexpected_exception
)

logger = logging.getLogger(__name__)

# ==================== VALIDACIONES ====================

def _validate_required_fields(booking_data: dict) -> None:
    if not booking_data.get("tutor_id"):
        raise ValidationException("tutor_id is required")
    topic = booking_data.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        raise ValidationException("topic is required")
    if not booking_data.get("proposed_start_time"):
        raise ValidationException("proposed_start_time is required")
    if not booking_data.get("proposed_end_time"):
        raise ValidationException("proposed_end_time is required")


def _validate_tutor_type(tutor_type: str) -> None:
    if tutor_type not in (TutorType.SOLE_TUTOR.value, TutorType.ORGANIZATION.value):
        raise ValidationException("tutor_type must be sole_tutor or organization")


def _validate_category(category: Optional[str]) -> None:
    if category and category not in BOOKING_CATEGORIES:
        raise ValidationException(f"category must be one of: {', '.join(BOOKING_CATEGORIES)}")


async def _get_bookable_profile(db: AsyncSession, tutor_id: int, tutor_type: str) -> TutorCoachingProfile:
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
    return profile


async def _validate_no_active_request(db: AsyncSession, student_id: int, tutor_id: int, tutor_type: str) -> None:
    result = await db.execute(
        select(CoachingBookingRequest.id).where(
            CoachingBookingRequest.student_id == student_id,
            CoachingBookingRequest.tutor_id == tutor_id,
            CoachingBookingRequest.tutor_type == tutor_type,
            CoachingBookingRequest.status.in_(ACTIVE_BOOKING_STATUSES)
        ).limit(1)
    )
    if result.scalar_one_or_none():
        raise ConflictException(
            "You already have an active booking request with this tutor. "
            "Please wait for a response or cancel the existing request."
        )


async def _is_within_availability(db: AsyncSession, tutor_id: int, tutor_type: str, start_time, end_time) -> bool:
    """True si algún bloque activo (semanal o de fecha puntual) contiene el horario propuesto."""
    # Los bloques no cruzan la medianoche ("HH:MM" termina como máximo en 23:59)
    if end_time.date() != start_time.date():
        return False

    start_hhmm = start_time.strftime("%H:%M")
    end_hhmm = end_time.strftime("%H:%M")

    result = await db.execute(
        select(TutorAvailability.id).where(
            TutorAvailability.tutor_id == tutor_id,
            TutorAvailability.tutor_type == tutor_type,
            TutorAvailability.is_active == True,
            TutorAvailability.start_time <= start_hhmm,
            TutorAvailability.end_time >= end_hhmm,
            or_(
                and_(
                    TutorAvailability.is_recurring == True,
                    TutorAvailability.day_of_week == get_sunday_based_weekday(start_time)
                ),
                and_(
                    TutorAvailability.is_recurring == False,
                    TutorAvailability.specific_date == start_time.date()
                ),
            )
        ).limit(1)
    )
    return result.scalar_one_or_none() is not None

# ==================== FUNCIONES PRINCIPALES ====================

async def create_booking_request(
    db: AsyncSession,
    student_id: int,
    booking_data: dict
) -> CoachingBookingRequest:
    """
    El estudiante propone un horario a un tutor.
    Se fija la tarifa del perfil en ese momento y la solicitud expira en 48h.
    """
    try:
        _validate_required_fields(booking_data)

        tutor_id = booking_data["tutor_id"]
        tutor_type = booking_data.get("tutor_type") or TutorType.SOLE_TUTOR.value
        _validate_tutor_type(tutor_type)
        _validate_category(booking_data.get("category"))

        profile = await _get_bookable_profile(db, tutor_id, tutor_type)

        start_time = get_parsed_datetime(booking_data["proposed_start_time"])
        end_time = get_parsed_datetime(booking_data["proposed_end_time"])
        now = get_utc_now()

        if start_time is None or end_time is None:
            raise ValidationException("Invalid date format for proposed times")

        if start_time <= now:
            raise ValidationException("Proposed start time must be in the future")

        if end_time <= start_time:
            raise ValidationException("Proposed end time must be after start time")

        duration = booking_data.get("duration_minutes") or get_duration_minutes(start_time, end_time)
        if not isinstance(duration, int) or isinstance(duration, bool):
            raise ValidationException("duration_minutes must be an integer")

        if duration < profile.min_duration_minutes:
            raise ValidationException(f"Minimum session duration is {profile.min_duration_minutes} minutes")

        if duration > profile.max_duration_minutes:
            raise ValidationException(f"Maximum session duration is {profile.max_duration_minutes} minutes")

        await _validate_no_active_request(db, student_id, tutor_id, tutor_type)

        is_from_availability = await _is_within_availability(db, tutor_id, tutor_type, start_time, end_time)

        description = (booking_data.get("description") or "").strip()
        student_note = (booking_data.get("student_note") or "").strip()

        booking = CoachingBookingRequest(
            student_id=student_id,
            tutor_id=tutor_id,
            tutor_type=tutor_type,
            topic=booking_data["topic"].strip(),
            description=description or None,
            category=booking_data.get("category") or None,
            proposed_start_time=start_time,
            proposed_end_time=end_time,
            proposed_duration_minutes=duration,
            is_from_availability=is_from_availability,
            status=BookingStatus.PENDING.value,
            hourly_rate=profile.hourly_rate,
            estimated_price=get_session_price(profile.hourly_rate, duration),
            currency=profile.currency,
            student_note=student_note or None,
            expires_at=get_expiry_from_now(settings.BOOKING_REQUEST_EXPIRY_HOURS)
        )

        db.add(booking)
        await db.commit()
        await db.refresh(booking)

        logger.info(
            f"✅ Solicitud de coaching {booking.id} creada por estudiante {student_id} "
            f"para tutor {tutor_type}:{tutor_id} (desde disponibilidad: {is_from_availability})"
        )
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error creando solicitud de coaching: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def list_student_booking_requests(
    db: AsyncSession,
    student_id: int,
    status: Optional[str] = None,
    page: Optional[int] = 1,
    limit: Optional[int] = None
) -> Dict:
    """Solicitudes del estudiante, de la más nueva a la más antigua."""
    try:
        if status and status not in {s.value for s in BookingStatus}:
            raise ValidationException(f"Invalid status filter: {status}")

        await expire_overdue_requests(db, CoachingBookingRequest.student_id == student_id)

        query = select(CoachingBookingRequest).where(CoachingBookingRequest.student_id == student_id)
        if status:
            query = query.where(CoachingBookingRequest.status == status)
        query = query.order_by(CoachingBookingRequest.created_at.desc(), CoachingBookingRequest.id.desc())
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
        logger.error(f"❌ Error obteniendo solicitudes del estudiante {student_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def cancel_booking_request(
    db: AsyncSession,
    student_id: int,
    request_id: int
) -> CoachingBookingRequest:
    """El estudiante retira una solicitud que sigue en negociación."""
    try:
        result = await db.execute(
            select(CoachingBookingRequest).where(
                CoachingBookingRequest.id == request_id,
                CoachingBookingRequest.student_id == student_id
            ).execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundException("Booking request not found")

        if booking.status not in ACTIVE_BOOKING_STATUSES:
            raise InvalidStateTransitionException(f"Cannot cancel a booking that is already {booking.status}")

        now = get_utc_now()
        if check_booking_expiry(booking, now) == ExpiryCheck.JUST_EXPIRED:
            await handle_just_expired(db, booking, "This booking request has expired")

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_at = now

        try:
            await db.commit()
        except StaleDataError:
            await db.rollback()
            raise ConflictException("Booking request was modified by another request. Please reload and try again.")
        await db.refresh(booking)

        logger.info(f"🚫 Solicitud {booking.id} cancelada por estudiante {student_id}")
        return booking

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error cancelando solicitud {request_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()
