from typing import Any, Dict, List
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import run_in_transaction
from app.core.exceptions import DuplicateCategoryError, InvalidFieldError, NotFoundError
from app.models.booking import Booking
from app.models.tutor_profile import Category, TutorProfile
from app.models.user import User

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "is_banned": user.is_banned,
        "created_at": user.created_at.isoformat(),
    }


def category_to_dict(category: Category) -> Dict[str, Any]:
    return {"id": str(category.id), "name": category.name}


class AdminService:
    """Administrative views over users, bookings and categories"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return [user_to_dict(user) for user in result.scalars().all()]

    async def set_user_banned(self, user_id: uuid.UUID, is_banned: bool) -> Dict[str, Any]:
        async def unit() -> User:
            result = await self.db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
            if not user:
                raise NotFoundError("User not found")
            user.is_banned = is_banned
            await self.db.flush()
            return user

        user = await run_in_transaction(self.db, unit)
        logger.info(f"User {user_id} {'banned' if is_banned else 'unbanned'}")
        return user_to_dict(user)

    async def list_bookings(self) -> List[Booking]:
        """All bookings newest first, with student and tutor"""
        result = await self.db.execute(
            select(Booking)
            .options(
                selectinload(Booking.student),
                selectinload(Booking.tutor).selectinload(TutorProfile.user)
            )
            .order_by(Booking.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_categories(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return [category_to_dict(category) for category in result.scalars().all()]

    async def create_category(self, name: str) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise InvalidFieldError("Category name is required")

        async def unit() -> Category:
            existing = await self.db.execute(select(Category.id).where(Category.name == name))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateCategoryError(f"Category already exists: {name}")
            category = Category(name=name)
            self.db.add(category)
            await self.db.flush()
            return category

        category = await run_in_transaction(self.db, unit)
        logger.info(f"Created category {category.name}")
        return category_to_dict(category)
