import uuid

import pytest
from sqlalchemy import select

from app.core.exceptions import (
    InvalidDayError,
    InvalidFieldError,
    InvalidTimeFormatError,
    InvalidTimeRangeError,
    NotFoundError,
    OverlappingSlotsError,
)
from app.core.time_helpers import WeekDay
from app.models.availability import AvailabilitySlot
from app.services.availability_service import AvailabilityService, normalize_slot_batch
from tests.helpers import add_slot, create_tutor


def slot(day, start, end):
    return {"day": day, "startTime": start, "endTime": end}


async def stored_ranges(db, tutor_id):
    result = await db.execute(
        select(AvailabilitySlot)
        .where(AvailabilitySlot.tutor_id == tutor_id)
        .execution_options(populate_existing=True)
    )
    return sorted((s.day, s.start_minute, s.end_minute) for s in result.scalars().all())


# normalize_slot_batch

def test_normalize_accepts_single_slot_object():
    batch = normalize_slot_batch(slot("monday", "09:00", "12:00"))
    assert len(batch) == 1
    assert batch[0].day is WeekDay.MONDAY
    assert (batch[0].start_minute, batch[0].end_minute) == (540, 720)


def test_normalize_accepts_snake_case_fields():
    batch = normalize_slot_batch([{"day": "Friday", "start_time": "08:00", "end_time": "09:00"}])
    assert batch[0].range == (480, 540)


def test_normalize_rejects_inverted_range_naming_day():
    with pytest.raises(InvalidTimeRangeError, match="Wednesday"):
        normalize_slot_batch([slot("wednesday", "12:00", "09:00")])


def test_normalize_rejects_zero_length_slot():
    with pytest.raises(InvalidTimeRangeError):
        normalize_slot_batch([slot("Monday", "09:00", "09:00")])


def test_normalize_allows_legacy_midnight_end():
    batch = normalize_slot_batch([slot("Monday", "22:00", "00:00")])
    assert batch[0].range == (1320, 1440)


def test_normalize_rejects_overlap_within_batch():
    with pytest.raises(OverlappingSlotsError, match="Monday"):
        normalize_slot_batch([slot("Monday", "09:00", "12:00"), slot("Monday", "11:00", "13:00")])


def test_normalize_allows_touching_and_duplicate_slots():
    batch = normalize_slot_batch([
        slot("Monday", "09:00", "12:00"),
        slot("Monday", "12:00", "13:00"),
        slot("Monday", "09:00", "12:00"),
        slot("Tuesday", "09:00", "12:00"),
    ])
    assert len(batch) == 4


def test_normalize_rejects_unknown_fields():
    with pytest.raises(InvalidFieldError):
        normalize_slot_batch([{"day": "Monday", "startTime": "09:00", "endTime": "10:00", "room": "A"}])


def test_normalize_rejects_bad_day_and_time():
    with pytest.raises(InvalidDayError):
        normalize_slot_batch([slot("Someday", "09:00", "10:00")])
    with pytest.raises(InvalidTimeFormatError):
        normalize_slot_batch([slot("Monday", "9am", "10:00")])


# reconcile / replace_all

@pytest.mark.asyncio
async def test_reconcile_into_empty_set_creates_all_and_lists_sorted(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)

    batch = normalize_slot_batch([
        slot("Wednesday", "14:00", "18:00"),
        slot("Monday", "13:00", "15:00"),
        slot("sunday", "10:00", "11:00"),
        slot("Monday", "09:00", "12:00"),
    ])
    created = await service.reconcile(tutor_id, batch)
    assert created == 4

    listed = await service.list_for_tutor(tutor_id)
    assert [(s["day"], s["start_time"], s["end_time"]) for s in listed] == [
        ("Sunday", "10:00", "11:00"),
        ("Monday", "09:00", "12:00"),
        ("Monday", "13:00", "15:00"),
        ("Wednesday", "14:00", "18:00"),
    ]


@pytest.mark.asyncio
async def test_reconcile_same_slot_twice_is_a_no_op(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)

    first = await service.reconcile(tutor_id, normalize_slot_batch(slot("Monday", "09:00", "12:00")))
    second = await service.reconcile(tutor_id, normalize_slot_batch(slot("MONDAY", "09:00", "12:00")))

    assert (first, second) == (1, 0)
    assert await stored_ranges(db, tutor_id) == [("Monday", 540, 720)]


@pytest.mark.asyncio
async def test_reconcile_collapses_duplicates_inside_one_batch(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    batch = normalize_slot_batch([slot("Monday", "09:00", "12:00"), slot("Monday", "09:00", "12:00")])

    assert await AvailabilityService(db).reconcile(tutor_id, batch) == 1


@pytest.mark.asyncio
async def test_reconcile_rejects_overlap_with_stored_slot(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)
    await service.reconcile(tutor_id, normalize_slot_batch(slot("Monday", "09:00", "12:00")))

    with pytest.raises(OverlappingSlotsError, match="Monday"):
        await service.reconcile(tutor_id, normalize_slot_batch(slot("Monday", "11:00", "13:00")))

    assert await stored_ranges(db, tutor_id) == [("Monday", 540, 720)]


@pytest.mark.asyncio
async def test_reconcile_failure_writes_nothing_from_the_batch(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)
    await service.reconcile(tutor_id, normalize_slot_batch(slot("Monday", "09:00", "12:00")))

    batch = normalize_slot_batch([slot("Tuesday", "09:00", "10:00"), slot("Monday", "10:00", "11:00")])
    with pytest.raises(OverlappingSlotsError):
        await service.reconcile(tutor_id, batch)

    assert await stored_ranges(db, tutor_id) == [("Monday", 540, 720)]


@pytest.mark.asyncio
async def test_reconcile_matches_legacy_lowercase_days(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    await add_slot(db, tutor, "monday", 540, 720)

    with pytest.raises(OverlappingSlotsError):
        await AvailabilityService(db).reconcile(tutor_id, normalize_slot_batch(slot("Monday", "10:00", "11:00")))


@pytest.mark.asyncio
async def test_reconcile_treats_stored_midnight_end_as_end_of_day(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    await add_slot(db, tutor, "Friday", 1320, 0)

    with pytest.raises(OverlappingSlotsError):
        await AvailabilityService(db).reconcile(tutor_id, normalize_slot_batch(slot("Friday", "23:00", "23:30")))


@pytest.mark.asyncio
async def test_replace_all_rewrites_slots(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)
    await service.reconcile(tutor_id, normalize_slot_batch([slot("Monday", "09:00", "12:00")]))

    created = await service.replace_all(tutor_id, normalize_slot_batch([
        slot("Monday", "10:00", "11:00"),
        slot("Thursday", "08:00", "09:00"),
        slot("Thursday", "08:00", "09:00"),
    ]))

    assert created == 2
    assert await stored_ranges(db, tutor_id) == [("Monday", 600, 660), ("Thursday", 480, 540)]


@pytest.mark.asyncio
async def test_set_availability_reports_created_and_current_slots(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    service = AvailabilityService(db)

    result = await service.set_availability(tutor_id, [slot("Monday", "09:00", "10:00")])
    assert result["created"] == 1
    result = await service.set_availability(tutor_id, [slot("Monday", "09:00", "10:00"), slot("Monday", "10:00", "11:00")])
    assert result["created"] == 1
    assert [s["start_time"] for s in result["slots"]] == ["09:00", "10:00"]


# update_one / remove_one

@pytest.mark.asyncio
async def test_update_one_applies_partial_fields(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    existing = await add_slot(db, tutor, "Monday", 540, 720)

    updated = await AvailabilityService(db).update_one(tutor_id, existing.id, {"endTime": "13:00", "day": "tuesday"})

    assert updated["day"] == "Tuesday"
    assert (updated["start_time"], updated["end_time"]) == ("09:00", "13:00")


@pytest.mark.asyncio
async def test_update_one_overlapping_sibling_leaves_storage_unchanged(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    first_id = (await add_slot(db, tutor, "Monday", 540, 600)).id
    await add_slot(db, tutor, "Monday", 660, 720)

    with pytest.raises(OverlappingSlotsError):
        await AvailabilityService(db).update_one(tutor_id, first_id, {"endTime": "11:30"})

    assert await stored_ranges(db, tutor_id) == [("Monday", 540, 600), ("Monday", 660, 720)]


@pytest.mark.asyncio
async def test_update_one_sees_siblings_stored_with_legacy_day_spelling(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    first_id = (await add_slot(db, tutor, "Monday", 540, 600)).id
    await add_slot(db, tutor, "mon-day", 660, 720)

    with pytest.raises(OverlappingSlotsError):
        await AvailabilityService(db).update_one(tutor_id, first_id, {"endTime": "11:30"})

    assert await stored_ranges(db, tutor_id) == [("Monday", 540, 600), ("mon-day", 660, 720)]


@pytest.mark.asyncio
async def test_update_one_ignores_itself_when_checking_overlap(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    existing = await add_slot(db, tutor, "Monday", 540, 720)

    updated = await AvailabilityService(db).update_one(tutor_id, existing.id, {"startTime": "10:00"})
    assert updated["start_time"] == "10:00"


@pytest.mark.asyncio
async def test_update_one_rejects_unknown_fields_and_bad_ranges(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    slot_id = (await add_slot(db, tutor, "Monday", 540, 720)).id
    service = AvailabilityService(db)

    with pytest.raises(InvalidFieldError):
        await service.update_one(tutor_id, slot_id, {"tutorId": str(uuid.uuid4())})
    with pytest.raises(InvalidTimeRangeError):
        await service.update_one(tutor_id, slot_id, {"startTime": "13:00"})


@pytest.mark.asyncio
async def test_update_and_remove_require_ownership(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    _, other = await create_tutor(db)
    foreign_id = (await add_slot(db, other, "Monday", 540, 720)).id
    service = AvailabilityService(db)

    with pytest.raises(NotFoundError):
        await service.update_one(tutor_id, foreign_id, {"startTime": "10:00"})
    with pytest.raises(NotFoundError):
        await service.remove_one(tutor_id, foreign_id)
    with pytest.raises(NotFoundError):
        await service.remove_one(tutor_id, uuid.uuid4())


@pytest.mark.asyncio
async def test_remove_one_returns_removed_slot(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    existing = await add_slot(db, tutor, "Saturday", 600, 660)
    slot_id = existing.id

    removed = await AvailabilityService(db).remove_one(tutor_id, slot_id)

    assert removed == {
        "id": str(slot_id),
        "tutor_id": str(tutor_id),
        "day": "Saturday",
        "start_time": "10:00",
        "end_time": "11:00",
    }
    assert await stored_ranges(db, tutor_id) == []


@pytest.mark.asyncio
async def test_list_for_tutor_sorts_unknown_days_last(db):
    _, tutor = await create_tutor(db)
    tutor_id = tutor.id
    await add_slot(db, tutor, "Holiday", 60, 120)
    await add_slot(db, tutor, "saturday", 60, 120)
    await add_slot(db, tutor, "Sunday", 600, 660)
    await add_slot(db, tutor, "Sunday", 60, 120)

    listed = await AvailabilityService(db).list_for_tutor(tutor_id)

    assert [(s["day"], s["start_time"]) for s in listed] == [
        ("Sunday", "01:00"),
        ("Sunday", "10:00"),
        ("Saturday", "01:00"),
        ("Holiday", "01:00"),
    ]
