import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, TutorProfileNotFoundError
from app.models.tutor_profile import TutorProfile


async def get_tutor_profile_for_user(db: AsyncSession, user_id: uuid.UUID) -> TutorProfile:
    """Tutor profile owned by a user, raising TutorProfileNotFoundError if none"""
    result = await db.execute(
        select(TutorProfile).where(TutorProfile.user_id == user_id)
    )
    profile = result.scalar_one_or_none()
    if not profile:
        raise TutorProfileNotFoundError(
            "Tutor profile not found. Ensure you are registered as a tutor."
        )
    return profile


async def lock_tutor_profile(db: AsyncSession, tutor_id: uuid.UUID) -> TutorProfile:
    """Take a row lock on the tutor profile for the rest of the transaction.

    Writers touching a tutor's slots or bookings serialize on this row.
    """
    result = await db.execute(
        select(TutorProfile).where(TutorProfile.id == tutor_id).with_for_update()
    )
    profile = result.scalar_one_or_none()
    if not profile:
        raise NotFoundError("Tutor not found")
    return profile
