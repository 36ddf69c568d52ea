from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import delete
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
import logging

from app.configs.settings import settings
from app.models.coaching.availability import TutorAvailability
from app.services.coaching.coaching_profile_service import get_profile_timezone
from app.services.utils.datetime_service import get_normalized_time, get_parsed_date, get_utc_today
from app.services.validation.exception import (
    NotFoundException, ValidationException, ConflictException, unexpected_exception
)

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def check_slots_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Intervalos semiabiertos [inicio, fin): 09:00-10:00 y 10:00-11:00 no se solapan."""
    return start_a < end_b and end_a > start_b


def _validate_slot_times(start_time: Any, end_time: Any) -> tuple:
    if not start_time or not end_time:
        raise ValidationException("start_time and end_time are required for each slot")

    start = get_normalized_time(start_time)
    end = get_normalized_time(end_time)
    if start is None or end is None:
        raise ValidationException("start_time and end_time must use the HH:MM format")

    if start >= end:
        raise ValidationException(f"start_time ({start}) must be before end_time ({end})")

    return start, end


async def _find_overlapping_slot(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    start: str,
    end: str,
    *recurrence_key
) -> Optional[TutorAvailability]:
    result = await db.execute(
        select(TutorAvailability).where(
            TutorAvailability.tutor_id == tutor_id,
            TutorAvailability.tutor_type == tutor_type,
            TutorAvailability.is_active == True,
            TutorAvailability.start_time < end,
            TutorAvailability.end_time > start,
            *recurrence_key
        ).limit(1)
    )
    return result.scalar_one_or_none()


async def _build_slot(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    slot_data: Dict[str, Any],
    default_timezone: str
) -> TutorAvailability:
    """
    Valida un bloque y lo devuelve listo para insertar.
    El solapamiento se revisa contra los bloques activos del mismo día de la
    semana (recurrentes) o de la misma fecha (puntuales), incluidos los ya
    agregados en este mismo lote.
    """
    start, end = _validate_slot_times(slot_data.get("start_time"), slot_data.get("end_time"))
    is_recurring = bool(slot_data.get("is_recurring"))

    if is_recurring:
        day_of_week = slot_data.get("day_of_week")
        if day_of_week is None:
            raise ValidationException("day_of_week is required for recurring slots")
        if not isinstance(day_of_week, int) or isinstance(day_of_week, bool) or not 0 <= day_of_week <= 6:
            raise ValidationException("day_of_week must be 0 (Sunday) to 6 (Saturday)")

        existing = await _find_overlapping_slot(
            db, tutor_id, tutor_type, start, end,
            TutorAvailability.is_recurring == True,
            TutorAvailability.day_of_week == day_of_week
        )
        if existing:
            raise ConflictException(
                f"Overlapping recurring slot exists for {DAY_NAMES[day_of_week]} "
                f"({existing.start_time} - {existing.end_time})"
            )
        specific_date = None
    else:
        raw_date = slot_data.get("specific_date")
        if not raw_date:
            raise ValidationException("specific_date is required for non-recurring slots")
        specific_date = get_parsed_date(raw_date)
        if specific_date is None:
            raise ValidationException("specific_date must use the YYYY-MM-DD format")
        if specific_date < get_utc_today():
            raise ValidationException("specific_date cannot be in the past")

        existing = await _find_overlapping_slot(
            db, tutor_id, tutor_type, start, end,
            TutorAvailability.is_recurring == False,
            TutorAvailability.specific_date == specific_date
        )
        if existing:
            raise ConflictException(
                f"Overlapping slot exists for {specific_date.isoformat()} "
                f"({existing.start_time} - {existing.end_time})"
            )
        day_of_week = None

    return TutorAvailability(
        tutor_id=tutor_id,
        tutor_type=tutor_type,
        is_recurring=is_recurring,
        day_of_week=day_of_week,
        specific_date=specific_date,
        start_time=start,
        end_time=end,
        timezone=slot_data.get("timezone") or default_timezone,
        is_active=True
    )

# ==================== FUNCIONES PRINCIPALES ====================

async def get_tutor_availability(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str
) -> Dict:
    """
    Bloques activos del tutor: primero los recurrentes, luego por día de la
    semana, fecha y hora de inicio.
    """
    try:
        result = await db.execute(
            select(TutorAvailability).where(
                TutorAvailability.tutor_id == tutor_id,
                TutorAvailability.tutor_type == tutor_type,
                TutorAvailability.is_active == True
            ).order_by(
                TutorAvailability.is_recurring.desc(),
                TutorAvailability.day_of_week.asc(),
                TutorAvailability.specific_date.asc(),
                TutorAvailability.start_time.asc()
            )
        )
        slots = result.scalars().all()

        return {
            "recurring": [slot for slot in slots if slot.is_recurring],
            "specific": [slot for slot in slots if not slot.is_recurring],
            "total": len(slots)
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"❌ Error obteniendo disponibilidad del tutor: {str(e)}")
        await unexpected_exception()


async def add_availability_slots(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    slots: List[Dict[str, Any]]
) -> List[TutorAvailability]:
    """
    Agrega entre 1 y 20 bloques. Se validan en el orden recibido y el primer
    error cancela todo el lote: no se guarda ningún bloque.
    """
    try:
        if not slots or not isinstance(slots, list):
            raise ValidationException("Please provide at least one availability slot")

        if len(slots) > settings.MAX_SLOTS_PER_BATCH:
            raise ValidationException(f"Cannot add more than {settings.MAX_SLOTS_PER_BATCH} slots at once")

        default_timezone = await get_profile_timezone(db, tutor_id, tutor_type) or settings.DEFAULT_TIMEZONE

        created_slots = []
        for slot_data in slots:
            slot = await _build_slot(db, tutor_id, tutor_type, slot_data, default_timezone)
            db.add(slot)
            # flush para que los siguientes del lote lo vean al revisar solapamientos
            await db.flush()
            created_slots.append(slot)

        await db.commit()
        for slot in created_slots:
            await db.refresh(slot)

        logger.info(f"✅ {len(created_slots)} bloques de disponibilidad agregados para tutor {tutor_type}:{tutor_id}")
        return created_slots

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error agregando disponibilidad: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def update_availability_slot(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    slot_id: int,
    slot_data: Dict[str, Any]
) -> TutorAvailability:
    """
    Actualiza start_time, end_time, timezone o is_active de un bloque.
    Solo se revisa que inicio < fin; el solapamiento con otros bloques se
    controla únicamente al crearlos.
    """
    try:
        result = await db.execute(
            select(TutorAvailability).where(
                TutorAvailability.id == slot_id,
                TutorAvailability.tutor_id == tutor_id,
                TutorAvailability.tutor_type == tutor_type
            )
        )
        slot = result.scalar_one_or_none()
        if not slot:
            raise NotFoundException("Availability slot not found")

        start = slot.start_time
        end = slot.end_time
        if slot_data.get("start_time") is not None:
            start = get_normalized_time(slot_data["start_time"])
            if start is None:
                raise ValidationException("start_time must use the HH:MM format")
        if slot_data.get("end_time") is not None:
            end = get_normalized_time(slot_data["end_time"])
            if end is None:
                raise ValidationException("end_time must use the HH:MM format")

        if start >= end:
            raise ValidationException("start_time must be before end_time")

        slot.start_time = start
        slot.end_time = end
        if slot_data.get("timezone") is not None:
            slot.timezone = slot_data["timezone"]
        if slot_data.get("is_active") is not None:
            slot.is_active = bool(slot_data["is_active"])

        await db.commit()
        await db.refresh(slot)
        logger.info(f"✅ Bloque de disponibilidad {slot.id} actualizado")
        return slot

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error actualizando disponibilidad {slot_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def delete_availability_slot(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    slot_id: int
) -> None:
    try:
        result = await db.execute(
            select(TutorAvailability).where(
                TutorAvailability.id == slot_id,
                TutorAvailability.tutor_id == tutor_id,
                TutorAvailability.tutor_type == tutor_type
            )
        )
        slot = result.scalar_one_or_none()
        if not slot:
            raise NotFoundException("Availability slot not found")

        await db.delete(slot)
        await db.commit()
        logger.info(f"🗑️ Bloque de disponibilidad {slot_id} eliminado")

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error eliminando disponibilidad {slot_id}: {str(e)}")
        await db.rollback()
        await unexpected_exception()


async def bulk_delete_availability_slots(
    db: AsyncSession,
    tutor_id: int,
    tutor_type: str,
    slot_ids: List[int]
) -> int:
    """
    Elimina los bloques indicados que pertenecen al tutor. Los ids ajenos o
    inexistentes se ignoran. Devuelve cuántos se eliminaron.
    """
    try:
        if not slot_ids or not isinstance(slot_ids, list):
            raise ValidationException("Please provide slot_ids array")

        result = await db.execute(
            delete(TutorAvailability).where(
                TutorAvailability.id.in_(slot_ids),
                TutorAvailability.tutor_id == tutor_id,
                TutorAvailability.tutor_type == tutor_type
            ).execution_options(synchronize_session=False)
        )
        deleted = result.rowcount or 0
        await db.commit()

        logger.info(f"🗑️ {deleted} bloques de disponibilidad eliminados para tutor {tutor_type}:{tutor_id}")
        return deleted

    except HTTPException:
        await db.rollback()
        raise
    except Exception as e:
        logger.error(f"❌ Error eliminando bloques de disponibilidad: {str(e)}")
        await db.rollback()
        await unexpected_exception()
