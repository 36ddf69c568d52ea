from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import get_db, get_current_tutor
from app.schemas.coaching.availability_schema import (
    AvailabilityBatchCreate, AvailabilitySlotUpdate, AvailabilityBulkDelete,
    AvailabilitySlotData, AvailabilityListResponse
)
from app.services.coaching.availability_service import (
    get_tutor_availability,
    add_availability_slots,
    update_availability_slot,
    delete_availability_slot,
    bulk_delete_availability_slots
)
from app.services.coaching.tutor_identity_service import TutorIdentity

router = APIRouter()


@router.get("/", response_model=AvailabilityListResponse)
async def list_availability(
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Obtener los bloques activos del tutor, separados en recurrentes y de fecha puntual
    """
    result = await get_tutor_availability(db, tutor.tutor_id, tutor.tutor_type)
    return {
        "success": True,
        "data": result
    }


@router.post("/", status_code=201)
async def add_availability(
    request: AvailabilityBatchCreate,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Agregar de 1 a 20 bloques. Si uno falla no se guarda ninguno.
    """
    created = await add_availability_slots(
        db,
        tutor.tutor_id,
        tutor.tutor_type,
        [slot.model_dump() for slot in request.slots]
    )
    return {
        "success": True,
        "message": f"{len(created)} availability slot(s) added",
        "data": {"slots": [AvailabilitySlotData.model_validate(slot) for slot in created]}
    }


@router.delete("/")
async def bulk_delete_availability(
    request: AvailabilityBulkDelete,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    deleted = await bulk_delete_availability_slots(db, tutor.tutor_id, tutor.tutor_type, request.slot_ids)
    return {
        "success": True,
        "message": f"{deleted} availability slot(s) deleted",
        "data": {"deleted": deleted}
    }


@router.put("/{slot_id}/")
async def update_availability(
    slot_id: int,
    request: AvailabilitySlotUpdate,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    """
    Actualizar hora, zona horaria o estado de un bloque
    """
    slot = await update_availability_slot(
        db,
        tutor.tutor_id,
        tutor.tutor_type,
        slot_id,
        request.model_dump(exclude_unset=True)
    )
    return {
        "success": True,
        "message": "Availability slot updated",
        "data": {"slot": AvailabilitySlotData.model_validate(slot)}
    }


@router.delete("/{slot_id}/")
async def delete_availability(
    slot_id: int,
    db: AsyncSession = Depends(get_db),
    tutor: TutorIdentity = Depends(get_current_tutor)
):
    await delete_availability_slot(db, tutor.tutor_id, tutor.tutor_type, slot_id)
    return {
        "success": True,
        "message": "Availability slot deleted"
    }
