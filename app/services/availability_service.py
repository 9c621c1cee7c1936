from collections import defaultdict
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_in_transaction
from app.core.exceptions import (
    InvalidDayError,
    InvalidFieldError,
    InvalidTimeRangeError,
    NotFoundError,
    OverlappingSlotsError,
)
from app.core.time_helpers import (
    WeekDay,
    compute_range,
    day_index,
    format_time_of_day,
    normalize_day,
    parse_time_of_day,
    ranges_overlap,
)
from app.models.availability import AvailabilitySlot
from app.services.profile_lookup import lock_tutor_profile

logger = logging.getLogger(__name__)

# Recognized slot payload keys and the field each one sets
SLOT_FIELDS: Mapping[str, str] = MappingProxyType({
    "day": "day",
    "startTime": "start_time",
    "start_time": "start_time",
    "endTime": "end_time",
    "end_time": "end_time",
})


@dataclass(frozen=True)
class NormalizedSlot:
    """A validated weekly slot, not yet persisted"""
    day: WeekDay
    start_minute: int
    end_minute: int

    @property
    def range(self) -> Tuple[int, int]:
        return compute_range(self.start_minute, self.end_minute)


def canonical_slot_fields(payload: Any) -> Dict[str, Any]:
    """Map a raw slot payload onto canonical field names, rejecting unknown keys"""
    if not isinstance(payload, Mapping):
        raise InvalidFieldError("Each availability slot must be an object")

    fields: Dict[str, Any] = {}
    for key, value in payload.items():
        field = SLOT_FIELDS.get(key)
        if field is None:
            raise InvalidFieldError(f"Unknown field: {key}")
        if field in fields:
            raise InvalidFieldError(f"Field given more than once: {field}")
        fields[field] = value
    return fields


def normalize_slot(payload: Any) -> NormalizedSlot:
    fields = canonical_slot_fields(payload)
    day = normalize_day(fields.get("day"))
    slot = NormalizedSlot(
        day=day,
        start_minute=parse_time_of_day(fields.get("start_time"), "startTime"),
        end_minute=parse_time_of_day(fields.get("end_time"), "endTime"),
    )
    start, end = slot.range
    if start >= end:
        raise InvalidTimeRangeError(f"Start time must be before end time on {day.value}")
    return slot


def normalize_slot_batch(raw_slots: Any) -> List[NormalizedSlot]:
    """Validate a single slot or a sequence of slots.

    Fails on the first invalid entry, then rejects any partial overlap
    inside the batch itself. Exact duplicates pass and are collapsed later.
    """
    if isinstance(raw_slots, Mapping):
        raw_slots = [raw_slots]
    if not isinstance(raw_slots, (list, tuple)):
        raise InvalidFieldError("Availability must be a slot or a list of slots")

    slots = [normalize_slot(raw) for raw in raw_slots]

    by_day: Dict[WeekDay, List[Tuple[int, int]]] = defaultdict(list)
    for slot in slots:
        by_day[slot.day].append(slot.range)

    for day, ranges in by_day.items():
        kept: Optional[Tuple[int, int]] = None
        for current in sorted(ranges):
            if kept is None or current == kept:
                kept = current
                continue
            if current[0] < kept[1]:
                raise OverlappingSlotsError(f"Overlapping slots on {day.value}")
            kept = current

    return slots


def slot_to_dict(slot: AvailabilitySlot) -> Dict[str, Any]:
    """External representation of a stored slot"""
    try:
        day = normalize_day(slot.day).value
    except InvalidDayError:
        day = slot.day
    return {
        "id": str(slot.id),
        "tutor_id": str(slot.tutor_id),
        "day": day,
        "start_time": format_time_of_day(slot.start_minute),
        "end_time": format_time_of_day(slot.end_minute),
    }


def sort_slots(slots: Iterable[AvailabilitySlot]) -> List[AvailabilitySlot]:
    """Day of week (unknown days last), then start minute"""
    return sorted(slots, key=lambda s: (day_index(s.day), s.start_minute, s.end_minute))


class AvailabilityService:
    """Service for managing a tutor's recurring weekly availability"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_slots(self, tutor_id: uuid.UUID) -> List[AvailabilitySlot]:
        result = await self.db.execute(
            select(AvailabilitySlot).where(AvailabilitySlot.tutor_id == tutor_id)
        )
        return list(result.scalars().all())

    @staticmethod
    def _bucket_by_day(slots: Iterable[AvailabilitySlot]) -> Dict[str, List[Tuple[int, int]]]:
        buckets: Dict[str, List[Tuple[int, int]]] = defaultdict(list)
        for slot in slots:
            try:
                key = normalize_day(slot.day).value
            except InvalidDayError:
                key = slot.day
            buckets[key].append(compute_range(slot.start_minute, slot.end_minute))
        return buckets

    def _stage(
        self,
        tutor_id: uuid.UUID,
        batch: List[NormalizedSlot],
        buckets: Dict[str, List[Tuple[int, int]]]
    ) -> List[AvailabilitySlot]:
        """Check each incoming slot against the day bucket and stage the new ones"""
        staged = []
        for slot in batch:
            bucket = buckets[slot.day.value]
            candidate = slot.range

            if candidate in bucket:
                continue

            if any(ranges_overlap(candidate, existing) for existing in bucket):
                logger.warning(f"Rejected overlapping slot for tutor {tutor_id} on {slot.day.value}")
                raise OverlappingSlotsError(f"Overlapping slots on {slot.day.value}")

            bucket.append(candidate)
            staged.append(AvailabilitySlot(
                tutor_id=tutor_id,
                day=slot.day.value,
                start_minute=slot.start_minute,
                end_minute=slot.end_minute,
            ))
        return staged

    async def reconcile(self, tutor_id: uuid.UUID, batch: List[NormalizedSlot]) -> int:
        """Merge validated slots into the tutor's stored slots.

        Identical slots are skipped, partial overlaps fail the whole batch.
        Returns the number of slots actually created.
        """
        async def unit() -> int:
            await lock_tutor_profile(self.db, tutor_id)
            buckets = self._bucket_by_day(await self._load_slots(tutor_id))
            staged = self._stage(tutor_id, batch, buckets)
            if staged:
                self.db.add_all(staged)
                await self.db.flush()
            return len(staged)

        created = await run_in_transaction(self.db, unit)
        logger.info(f"Created {created} availability slots for tutor {tutor_id}")
        return created

    async def replace_all(self, tutor_id: uuid.UUID, batch: List[NormalizedSlot]) -> int:
        """Delete every stored slot of the tutor and recreate from the batch"""
        async def unit() -> int:
            await lock_tutor_profile(self.db, tutor_id)
            await self.db.execute(
                delete(AvailabilitySlot).where(AvailabilitySlot.tutor_id == tutor_id)
            )
            staged = self._stage(tutor_id, batch, defaultdict(list))
            if staged:
                self.db.add_all(staged)
                await self.db.flush()
            return len(staged)

        created = await run_in_transaction(self.db, unit)
        logger.info(f"Replaced availability for tutor {tutor_id} with {created} slots")
        return created

    async def set_availability(self, tutor_id: uuid.UUID, raw_slots: Any, replace: bool = False) -> Dict[str, Any]:
        """Validate a raw batch, then merge it in (or replace everything)"""
        batch = normalize_slot_batch(raw_slots)
        if replace:
            created = await self.replace_all(tutor_id, batch)
        else:
            created = await self.reconcile(tutor_id, batch)

        return {
            "created": created,
            "slots": await self.list_for_tutor(tutor_id),
        }

    async def _get_owned_slot(self, tutor_id: uuid.UUID, slot_id: uuid.UUID) -> AvailabilitySlot:
        result = await self.db.execute(
            select(AvailabilitySlot).where(
                AvailabilitySlot.id == slot_id,
                AvailabilitySlot.tutor_id == tutor_id
            )
        )
        slot = result.scalar_one_or_none()
        if not slot:
            raise NotFoundError("Availability slot not found")
        return slot

    async def update_one(self, tutor_id: uuid.UUID, slot_id: uuid.UUID, payload: Any) -> Dict[str, Any]:
        """Apply a partial update to one slot, keeping the day free of overlaps"""
        fields = canonical_slot_fields(payload)

        async def unit() -> AvailabilitySlot:
            await lock_tutor_profile(self.db, tutor_id)
            slot = await self._get_owned_slot(tutor_id, slot_id)

            day = normalize_day(fields["day"]) if "day" in fields else normalize_day(slot.day)
            start_minute = (
                parse_time_of_day(fields["start_time"], "startTime")
                if "start_time" in fields else slot.start_minute
            )
            end_minute = (
                parse_time_of_day(fields["end_time"], "endTime")
                if "end_time" in fields else slot.end_minute
            )

            candidate = compute_range(start_minute, end_minute)
            if candidate[0] >= candidate[1]:
                raise InvalidTimeRangeError(f"Start time must be before end time on {day.value}")

            siblings = [
                other for other in await self._load_slots(tutor_id)
                if other.id != slot.id and day_index(other.day) == day.index
            ]
            for other in siblings:
                if ranges_overlap(candidate, compute_range(other.start_minute, other.end_minute)):
                    logger.warning(f"Rejected slot update {slot_id} for tutor {tutor_id}: overlap on {day.value}")
                    raise OverlappingSlotsError(f"Overlapping slots on {day.value}")

            slot.day = day.value
            slot.start_minute = start_minute
            slot.end_minute = end_minute
            await self.db.flush()
            return slot

        slot = await run_in_transaction(self.db, unit)
        logger.info(f"Updated availability slot {slot_id} for tutor {tutor_id}")
        return slot_to_dict(slot)

    async def remove_one(self, tutor_id: uuid.UUID, slot_id: uuid.UUID) -> Dict[str, Any]:
        """Delete one owned slot and return it"""
        async def unit() -> Dict[str, Any]:
            slot = await self._get_owned_slot(tutor_id, slot_id)
            removed = slot_to_dict(slot)
            await self.db.delete(slot)
            await self.db.flush()
            return removed

        removed = await run_in_transaction(self.db, unit)
        logger.info(f"Removed availability slot {slot_id} for tutor {tutor_id}")
        return removed

    async def list_for_tutor(self, tutor_id: uuid.UUID) -> List[Dict[str, Any]]:
        """All slots of a tutor ordered by day of week then start time"""
        return [slot_to_dict(slot) for slot in sort_slots(await self._load_slots(tutor_id))]

    async def find_slots_for_days(self, tutor_id: uuid.UUID, days: Iterable[WeekDay]) -> List[AvailabilitySlot]:
        """Slots of a tutor whose stored day normalizes to any of the given days"""
        wanted = {normalize_day(day).index for day in days}
        return [slot for slot in await self._load_slots(tutor_id) if day_index(slot.day) in wanted]
