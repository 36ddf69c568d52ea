from enum import Enum
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.coaching.booking_request import CoachingBookingRequest
from app.models.coaching.constants import BookingStatus, ACTIVE_BOOKING_STATUSES
from app.services.utils.datetime_service import get_utc_now
from app.services.validation.exception import ExpiredException, ConflictException

logger = logging.getLogger(__name__)


class ExpiryCheck(str, Enum):
    ACTIVE = "active"
    JUST_EXPIRED = "just_expired"


def check_booking_expiry(booking: CoachingBookingRequest, now: Optional[datetime] = None) -> ExpiryCheck:
    """
    Guardia de expiración perezosa: no hay proceso en segundo plano,
    cada operación revisa `expires_at` al momento de ejecutarse.
    """
    now = now or get_utc_now()
    if booking.status not in ACTIVE_BOOKING_STATUSES:
        return ExpiryCheck.ACTIVE
    if booking.expires_at is not None and booking.expires_at < now:
        return ExpiryCheck.JUST_EXPIRED
    return ExpiryCheck.ACTIVE


async def handle_just_expired(db: AsyncSession, booking: CoachingBookingRequest, message: str) -> None:
    """
    Guarda el estado `expired` y luego falla con 410.
    Es la única escritura que se confirma aunque la operación termine en error.
    """
    booking.status = BookingStatus.EXPIRED.value
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        raise ConflictException("Booking request was modified by another request. Please reload and try again.")

    logger.warning(f"⌛ Solicitud de coaching {booking.id} marcada como expirada")
    raise ExpiredException(message)


async def expire_overdue_requests(db: AsyncSession, *conditions) -> int:
    """
    Marca como expiradas, dentro del alcance indicado por `conditions`,
    las solicitudes activas cuyo `expires_at` ya pasó. Se llama antes de leer.
    """
    stmt = (
        update(CoachingBookingRequest)
        .where(
            CoachingBookingRequest.status.in_(ACTIVE_BOOKING_STATUSES),
            CoachingBookingRequest.expires_at.is_not(None),
            CoachingBookingRequest.expires_at < get_utc_now(),
            *conditions
        )
        .values(
            status=BookingStatus.EXPIRED.value,
            version=CoachingBookingRequest.version + 1
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    expired_count = result.rowcount or 0
    await db.commit()

    if expired_count:
        logger.info(f"✅ {expired_count} solicitudes de coaching marcadas como expiradas")
    return expired_count
