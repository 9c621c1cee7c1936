from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.database import run_in_transaction, utcnow
from app.core.exceptions import (
    AlreadyCompletedError,
    CannotCancelCompletedError,
    CannotCompleteCancelledError,
    NoAvailabilityError,
    NotFoundError,
    OutsideAvailabilityError,
    PastBookingError,
    SlotTakenError,
)
from app.core.time_helpers import (
    MINUTES_PER_DAY,
    WeekDay,
    collision_bounds,
    compute_range,
    day_of,
    day_index,
    minute_of_day,
    next_day,
    parse_instant,
    previous_day,
)
from app.models.availability import AvailabilitySlot
from app.models.booking import Booking, BookingStatus
from app.models.tutor_profile import TutorProfile
from app.services.availability_service import AvailabilityService
from app.services.profile_lookup import get_tutor_profile_for_user, lock_tutor_profile

logger = logging.getLogger(__name__)


def fits_availability_window(
    start_minute: int,
    duration_minutes: int,
    day_slots: Iterable[AvailabilitySlot],
    next_day_slots: Iterable[AvailabilitySlot]
) -> bool:
    """Whether [start, start + duration) lies inside one slot of the day.

    A session running past midnight needs a slot ending at 24:00 continued
    by a next-day slot starting at 00:00.
    """
    end_minute = start_minute + duration_minutes
    continuations = [compute_range(s.start_minute, s.end_minute) for s in next_day_slots]

    for slot in day_slots:
        low, high = compute_range(slot.start_minute, slot.end_minute)
        if low > start_minute:
            continue
        if end_minute <= high:
            return True
        if high == MINUTES_PER_DAY and end_minute > MINUTES_PER_DAY:
            remainder = end_minute - MINUTES_PER_DAY
            if any(n_low == 0 and remainder <= n_high for n_low, n_high in continuations):
                return True
    return False


def booking_to_dict(booking: Booking) -> Dict[str, Any]:
    return {
        "id": str(booking.id),
        "student_id": str(booking.student_id),
        "tutor_id": str(booking.tutor_id),
        "session_date": booking.session_date.isoformat(),
        "status": booking.status.value,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
    }


def booking_detail_to_dict(booking: Booking) -> Dict[str, Any]:
    """Booking with its tutor profile and the tutor's user; student when loaded"""
    data = booking_to_dict(booking)
    tutor = booking.tutor
    data["tutor"] = {
        "id": str(tutor.id),
        "bio": tutor.bio,
        "price_per_hour": tutor.price_per_hour,
        "rating": tutor.rating,
        "user": {
            "id": str(tutor.user.id),
            "name": tutor.user.name,
            "email": tutor.user.email,
        },
    }
    if "student" in booking.__dict__ and booking.student is not None:
        data["student"] = {
            "id": str(booking.student.id),
            "name": booking.student.name,
            "email": booking.student.email,
        }
    return data


class SchedulingService:
    """Booking creation and lifecycle against a tutor's weekly availability"""

    def __init__(self, db: AsyncSession, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.availability = AvailabilityService(db)

    async def create_booking(self, student_id: uuid.UUID, tutor_id: uuid.UUID, session_date: Any) -> Booking:
        """Validate a one-hour session request and create an UPCOMING booking"""
        instant = parse_instant(session_date)

        if instant < self.clock():
            raise PastBookingError("Cannot book sessions in the past")

        low, high = collision_bounds(instant, settings.BOOKING_COLLISION_WINDOW_MINUTES)
        day = day_of(instant)
        # Previous day is included for overnight schedules
        candidate_days = [day, previous_day(day)]

        async def unit() -> Booking:
            await lock_tutor_profile(self.db, tutor_id)

            slots = await self.availability.find_slots_for_days(tutor_id, candidate_days)
            if not slots:
                raise NoAvailabilityError("Tutor is not available on this day")

            if settings.STRICT_AVAILABILITY_WINDOW:
                await self._check_within_window(tutor_id, instant, day, slots)

            clash = await self.db.execute(
                select(Booking.id).where(
                    Booking.tutor_id == tutor_id,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.session_date > low,
                    Booking.session_date < high
                ).limit(1)
            )
            if clash.scalar_one_or_none() is not None:
                logger.warning(f"Rejected booking for tutor {tutor_id} at {instant.isoformat()}: slot taken")
                raise SlotTakenError("This time is already booked. Please try another session.")

            booking = Booking(
                student_id=student_id,
                tutor_id=tutor_id,
                session_date=instant,
                status=BookingStatus.UPCOMING
            )
            self.db.add(booking)
            await self.db.flush()
            return booking

        booking = await run_in_transaction(self.db, unit)
        logger.info(f"Created booking {booking.id} for student {student_id} with tutor {tutor_id} at {instant.isoformat()}")
        return booking

    async def _check_within_window(
        self,
        tutor_id: uuid.UUID,
        instant: datetime,
        day: WeekDay,
        slots: List[AvailabilitySlot]
    ) -> None:
        day_slots = [s for s in slots if day_index(s.day) == day.index]
        next_day_slots = await self.availability.find_slots_for_days(tutor_id, [next_day(day)])

        if not fits_availability_window(
            minute_of_day(instant),
            settings.SESSION_DURATION_MINUTES,
            day_slots,
            next_day_slots
        ):
            raise OutsideAvailabilityError("Requested time is outside the tutor's availability")

    async def get_my_bookings(self, student_id: uuid.UUID) -> List[Booking]:
        """Student's bookings, newest created first, with tutor and tutor user loaded"""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.student_id == student_id)
            .options(selectinload(Booking.tutor).selectinload(TutorProfile.user))
            .order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_booking_by_id(self, booking_id: uuid.UUID, student_id: uuid.UUID) -> Optional[Booking]:
        """Booking owned by the student, or None"""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.id == booking_id, Booking.student_id == student_id)
            .options(
                selectinload(Booking.tutor).selectinload(TutorProfile.user),
                selectinload(Booking.student)
            )
        )
        return result.scalar_one_or_none()

    async def cancel_booking(self, booking_id: uuid.UUID, student_id: uuid.UUID) -> Optional[Booking]:
        """Cancel a student's booking; cancelling twice is a no-op"""
        async def unit() -> Optional[Booking]:
            result = await self.db.execute(
                select(Booking)
                .where(Booking.id == booking_id, Booking.student_id == student_id)
                .with_for_update()
            )
            booking = result.scalar_one_or_none()
            if not booking or booking.status == BookingStatus.CANCELLED:
                return booking

            if booking.status == BookingStatus.COMPLETED:
                raise CannotCancelCompletedError("Cannot cancel a completed booking")

            booking.status = BookingStatus.CANCELLED
            await self.db.flush()
            logger.info(f"Cancelled booking {booking.id} for student {student_id}")
            return booking

        return await run_in_transaction(self.db, unit)

    async def complete_booking(self, booking_id: uuid.UUID, tutor_user_id: uuid.UUID) -> Booking:
        """Mark an upcoming booking as completed by its tutor"""
        async def unit() -> Booking:
            tutor_profile = await get_tutor_profile_for_user(self.db, tutor_user_id)

            result = await self.db.execute(
                select(Booking)
                .where(Booking.id == booking_id, Booking.tutor_id == tutor_profile.id)
                .with_for_update()
            )
            booking = result.scalar_one_or_none()
            if not booking:
                raise NotFoundError("Booking not found or you are not authorized to complete this booking")

            if booking.status == BookingStatus.COMPLETED:
                raise AlreadyCompletedError("Booking is already completed")

            if booking.status == BookingStatus.CANCELLED:
                raise CannotCompleteCancelledError("Cannot complete a cancelled booking")

            booking.status = BookingStatus.COMPLETED
            await self.db.flush()
            return booking

        booking = await run_in_transaction(self.db, unit)
        logger.info(f"Completed booking {booking.id} by tutor user {tutor_user_id}")
        return booking
