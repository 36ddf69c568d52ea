import pytest
from datetime import timedelta
from sqlalchemy import select, func

from app.models.coaching.availability import TutorAvailability
from app.services.coaching.availability_service import (
    check_slots_overlap,
    get_tutor_availability,
    add_availability_slots,
    update_availability_slot,
    delete_availability_slot,
    bulk_delete_availability_slots
)
from app.services.utils.datetime_service import get_utc_today
from app.services.validation.exception import (
    ConflictException, NotFoundException, ValidationException
)

TUTOR_ID = 7


async def count_slots(db) -> int:
    result = await db.execute(select(func.count(TutorAvailability.id)))
    return result.scalar()


def test_touching_intervals_do_not_overlap():
    assert not check_slots_overlap("09:00", "10:00", "10:00", "11:00")
    assert check_slots_overlap("09:00", "10:00", "09:30", "10:30")
    assert check_slots_overlap("09:00", "12:00", "10:00", "11:00")


async def test_add_recurring_and_specific_slots(db, coaching_profile):
    next_week = (get_utc_today() + timedelta(days=7)).isoformat()

    created = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "9:00", "end_time": "10:00"},
        {"is_recurring": False, "specific_date": next_week, "start_time": "14:00", "end_time": "15:30"},
    ])

    assert len(created) == 2
    assert created[0].start_time == "09:00"
    assert created[0].specific_date is None
    assert created[1].day_of_week is None
    assert created[1].specific_date.isoformat() == next_week
    # Sin zona horaria explícita se usa la del perfil
    assert created[0].timezone == "Africa/Lagos"

    availability = await get_tutor_availability(db, TUTOR_ID, "sole_tutor")
    assert availability["total"] == 2
    assert [slot.id for slot in availability["recurring"]] == [created[0].id]
    assert [slot.id for slot in availability["specific"]] == [created[1].id]


async def test_recurring_overlap_is_rejected(db):
    await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 2, "start_time": "09:00", "end_time": "11:00"},
    ])

    with pytest.raises(ConflictException) as exc_info:
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
            {"is_recurring": True, "day_of_week": 2, "start_time": "10:00", "end_time": "12:00"},
        ])

    assert "Tuesday" in exc_info.value.detail
    assert await count_slots(db) == 1


async def test_touching_slots_and_other_days_are_allowed(db):
    created = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 3, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 3, "start_time": "10:00", "end_time": "11:00"},
        {"is_recurring": True, "day_of_week": 4, "start_time": "09:00", "end_time": "10:00"},
    ])

    assert len(created) == 3


async def test_other_tutor_slots_do_not_conflict(db):
    slot = {"is_recurring": True, "day_of_week": 0, "start_time": "09:00", "end_time": "10:00"}
    await add_availability_slots(db, TUTOR_ID, "sole_tutor", [slot])

    created = await add_availability_slots(db, 8, "sole_tutor", [slot])

    assert len(created) == 1


async def test_batch_is_all_or_nothing(db):
    with pytest.raises(ConflictException):
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
            {"is_recurring": True, "day_of_week": 5, "start_time": "08:00", "end_time": "09:00"},
            {"is_recurring": True, "day_of_week": 5, "start_time": "12:00", "end_time": "13:00"},
            # Se solapa con el primero del mismo lote
            {"is_recurring": True, "day_of_week": 5, "start_time": "08:30", "end_time": "09:30"},
        ])

    assert await count_slots(db) == 0


async def test_invalid_slots_are_rejected(db):
    yesterday = (get_utc_today() - timedelta(days=1)).isoformat()
    invalid_slots = [
        {"is_recurring": True, "day_of_week": 1, "start_time": "10:00", "end_time": "09:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "10:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 7, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": False, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": False, "specific_date": yesterday, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "25:00", "end_time": "26:00"},
        {"is_recurring": True, "day_of_week": 1, "end_time": "10:00"},
    ]

    for slot in invalid_slots:
        with pytest.raises(ValidationException):
            await add_availability_slots(db, TUTOR_ID, "sole_tutor", [slot])

    assert await count_slots(db) == 0


async def test_batch_size_limits(db):
    with pytest.raises(ValidationException):
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", [])

    too_many = [
        {"is_recurring": True, "day_of_week": 1, "start_time": f"{hour:02d}:00", "end_time": f"{hour:02d}:30"}
        for hour in range(21)
    ]
    with pytest.raises(ValidationException):
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", too_many)


async def test_update_does_not_check_overlap(db):
    first, second = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "11:00", "end_time": "12:00"},
    ])

    updated = await update_availability_slot(
        db, TUTOR_ID, "sole_tutor", second.id, {"start_time": "09:30", "timezone": "UTC"}
    )

    assert updated.start_time == "09:30"
    assert updated.end_time == "12:00"
    assert updated.timezone == "UTC"


async def test_update_rejects_inverted_times(db):
    slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
    ])

    with pytest.raises(ValidationException):
        await update_availability_slot(db, TUTOR_ID, "sole_tutor", slot.id, {"end_time": "08:00"})

    await db.refresh(slot)
    assert slot.end_time == "10:00"


async def test_inactive_slots_are_hidden(db):
    slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 6, "start_time": "09:00", "end_time": "10:00"},
    ])

    await update_availability_slot(db, TUTOR_ID, "sole_tutor", slot.id, {"is_active": False})

    availability = await get_tutor_availability(db, TUTOR_ID, "sole_tutor")
    assert availability["total"] == 0


async def test_delete_slot_checks_ownership(db):
    slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
    ])

    with pytest.raises(NotFoundException):
        await delete_availability_slot(db, 8, "sole_tutor", slot.id)

    await delete_availability_slot(db, TUTOR_ID, "sole_tutor", slot.id)
    assert await count_slots(db) == 0


async def test_bulk_delete_counts_only_owned_slots(db):
    own = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 2, "start_time": "09:00", "end_time": "10:00"},
    ])
    foreign, = await add_availability_slots(db, 8, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
    ])

    deleted = await bulk_delete_availability_slots(
        db, TUTOR_ID, "sole_tutor", [own[0].id, own[1].id, foreign.id, 999]
    )

    assert deleted == 2
    assert await count_slots(db) == 1


async def test_bulk_delete_requires_ids(db):
    with pytest.raises(ValidationException):
        await bulk_delete_availability_slots(db, TUTOR_ID, "sole_tutor", [])


async def test_specific_date_overlap_is_rejected(db):
    next_week = (get_utc_today() + timedelta(days=7)).isoformat()
    await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": False, "specific_date": next_week, "start_time": "14:00", "end_time": "16:00"},
    ])

    with pytest.raises(ConflictException) as exc_info:
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
            {"is_recurring": False, "specific_date": next_week, "start_time": "15:00", "end_time": "17:00"},
        ])

    assert next_week in exc_info.value.detail
    assert await count_slots(db) == 1

    # Otra fecha, o un bloque semanal el mismo día, no chocan
    created = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": False, "specific_date": (get_utc_today() + timedelta(days=8)).isoformat(),
         "start_time": "15:00", "end_time": "17:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "15:00", "end_time": "17:00"},
    ])
    assert len(created) == 2


async def test_missing_is_recurring_means_specific_date(db):
    tomorrow = (get_utc_today() + timedelta(days=1)).isoformat()

    slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"specific_date": tomorrow, "start_time": "09:00", "end_time": "10:00"},
    ])

    assert slot.is_recurring is False
    assert slot.day_of_week is None
    assert slot.specific_date.isoformat() == tomorrow


async def test_inactive_slot_does_not_block_new_slot(db):
    old_slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 4, "start_time": "09:00", "end_time": "11:00"},
    ])
    await update_availability_slot(db, TUTOR_ID, "sole_tutor", old_slot.id, {"is_active": False})

    new_slot, = await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": True, "day_of_week": 4, "start_time": "10:00", "end_time": "12:00"},
    ])

    availability = await get_tutor_availability(db, TUTOR_ID, "sole_tutor")
    assert [slot.id for slot in availability["recurring"]] == [new_slot.id]


async def test_list_orders_by_day_then_date_then_start_time(db):
    today = get_utc_today()
    day_8 = (today + timedelta(days=8)).isoformat()
    day_9 = (today + timedelta(days=9)).isoformat()

    await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
        {"is_recurring": False, "specific_date": day_9, "start_time": "08:00", "end_time": "09:00"},
        {"is_recurring": True, "day_of_week": 3, "start_time": "10:00", "end_time": "11:00"},
        {"is_recurring": False, "specific_date": day_8, "start_time": "12:00", "end_time": "13:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "14:00", "end_time": "15:00"},
        {"is_recurring": False, "specific_date": day_8, "start_time": "09:00", "end_time": "10:00"},
        {"is_recurring": True, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"},
    ])

    availability = await get_tutor_availability(db, TUTOR_ID, "sole_tutor")

    assert [(slot.day_of_week, slot.start_time) for slot in availability["recurring"]] == [
        (1, "09:00"), (1, "14:00"), (3, "10:00"),
    ]
    assert [(slot.specific_date.isoformat(), slot.start_time) for slot in availability["specific"]] == [
        (day_8, "09:00"), (day_8, "12:00"), (day_9, "08:00"),
    ]
    assert availability["total"] == 6


async def test_specific_date_with_trailing_text_is_rejected(db):
    next_week = (get_utc_today() + timedelta(days=7)).isoformat()

    with pytest.raises(ValidationException):
        await add_availability_slots(db, TUTOR_ID, "sole_tutor", [
            {"is_recurring": False, "specific_date": f"{next_week}xyz", "start_time": "09:00", "end_time": "10:00"},
        ])

    assert await count_slots(db) == 0
