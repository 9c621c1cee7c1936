from typing import Any, List, Optional
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import run_in_transaction
from app.core.exceptions import (
    DuplicateReviewError,
    InvalidRatingError,
    NotFoundError,
    ReviewNotAllowedError,
)
from app.models.booking import Booking, BookingStatus
from app.models.review import Review
from app.models.tutor_profile import TutorProfile
from app.services.profile_lookup import lock_tutor_profile

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def validate_rating(value: Any) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingError("Rating must be a whole number between 1 and 5")
    if not MIN_RATING <= value <= MAX_RATING:
        raise InvalidRatingError("Rating must be a whole number between 1 and 5")
    return value


class ReviewService:
    """Reviews of tutors by students who completed a session with them"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_review(
        self,
        student_id: uuid.UUID,
        tutor_id: uuid.UUID,
        rating: Any,
        comment: Optional[str] = None
    ) -> Review:
        rating = validate_rating(rating)

        async def unit() -> Review:
            # Serializes rating recomputation for the tutor
            profile = await lock_tutor_profile(self.db, tutor_id)

            completed = await self.db.execute(
                select(Booking.id).where(
                    Booking.student_id == student_id,
                    Booking.tutor_id == tutor_id,
                    Booking.status == BookingStatus.COMPLETED
                ).limit(1)
            )
            booking_id = completed.scalar_one_or_none()
            if booking_id is None:
                raise ReviewNotAllowedError("You can only review a tutor after completing a session")

            existing = await self.db.execute(
                select(Review.id).where(
                    Review.student_id == student_id,
                    Review.tutor_id == tutor_id
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateReviewError("You have already reviewed this tutor")

            review = Review(
                student_id=student_id,
                tutor_id=tutor_id,
                booking_id=booking_id,
                rating=rating,
                comment=comment
            )
            self.db.add(review)
            await self.db.flush()

            average = await self.db.execute(
                select(func.avg(Review.rating)).where(Review.tutor_id == tutor_id)
            )
            profile.rating = float(average.scalar_one() or 0)
            await self.db.flush()
            return review

        review = await run_in_transaction(self.db, unit)
        logger.info(f"Created review {review.id} for tutor {tutor_id} by student {student_id}")
        return review

    async def get_reviews_for_tutor(self, tutor_id: uuid.UUID) -> List[Review]:
        """Reviews of a tutor, newest first"""
        tutor = await self.db.execute(select(TutorProfile.id).where(TutorProfile.id == tutor_id))
        if tutor.scalar_one_or_none() is None:
            raise NotFoundError("Tutor not found")

        result = await self.db.execute(
            select(Review)
            .where(Review.tutor_id == tutor_id)
            .order_by(Review.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_review_by_booking(self, booking_id: uuid.UUID) -> Review:
        result = await self.db.execute(select(Review).where(Review.booking_id == booking_id))
        review = result.scalar_one_or_none()
        if review is None:
            raise NotFoundError("Review not found")
        return review
