"""Builders for users, tutors, slots and bookings used across tests."""

from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_access_token
from app.models.availability import AvailabilitySlot
from app.models.booking import Booking, BookingStatus
from app.models.tutor_profile import Category, TutorProfile
from app.models.user import User, UserRole

# 2030-01-01 is a Tuesday; 2030-01-07 is a Monday
FIXED_NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)
MONDAY = datetime(2030, 1, 7, tzinfo=timezone.utc)


def at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute)


def fixed_clock() -> datetime:
    return FIXED_NOW


async def create_user(db: AsyncSession, role: UserRole = UserRole.STUDENT, name: Optional[str] = None) -> User:
    suffix = uuid.uuid4().hex[:8]
    user = User(
        name=name or f"{role.value.title()} {suffix}",
        email=f"{role.value}_{suffix}@example.com",
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


async def create_category(db: AsyncSession, name: str) -> Category:
    category = Category(name=name)
    db.add(category)
    await db.commit()
    return category


async def create_tutor(
    db: AsyncSession,
    price_per_hour: float = 50,
    rating: float = 0,
    categories: Iterable[Category] = ()
) -> Tuple[User, TutorProfile]:
    user = await create_user(db, UserRole.TUTOR)
    profile = TutorProfile(
        user_id=user.id,
        bio="Experienced tutor",
        price_per_hour=price_per_hour,
        rating=rating,
        categories=list(categories),
    )
    db.add(profile)
    await db.commit()
    return user, profile


async def add_slot(db: AsyncSession, tutor: TutorProfile, day: str, start_minute: int, end_minute: int) -> AvailabilitySlot:
    """Insert a slot row directly, bypassing validation (for legacy rows)"""
    slot = AvailabilitySlot(tutor_id=tutor.id, day=day, start_minute=start_minute, end_minute=end_minute)
    db.add(slot)
    await db.commit()
    return slot


async def add_booking(
    db: AsyncSession,
    student: User,
    tutor: TutorProfile,
    session_date: datetime,
    status: BookingStatus = BookingStatus.UPCOMING
) -> Booking:
    booking = Booking(student_id=student.id, tutor_id=tutor.id, session_date=session_date, status=status)
    db.add(booking)
    await db.commit()
    return booking


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}
