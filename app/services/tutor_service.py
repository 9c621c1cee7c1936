from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import run_in_transaction
from app.core.exceptions import (
    InvalidCategoryError,
    InvalidFieldError,
    NotFoundError,
    ProfileExistsError,
)
from app.models.booking import Booking
from app.models.review import Review
from app.models.tutor_profile import Category, TutorProfile
from app.services.availability_service import slot_to_dict, sort_slots
from app.services.profile_lookup import get_tutor_profile_for_user
from app.services.scheduling_service import booking_to_dict

logger = logging.getLogger(__name__)

# Query keys accepted when browsing tutors
TUTOR_FILTER_FIELDS = ("max_price", "min_rating", "category")

# Keys a tutor may set on their own profile
PROFILE_UPDATE_FIELDS: Mapping[str, str] = MappingProxyType({
    "bio": "bio",
    "price_per_hour": "price_per_hour",
    "pricePerHr": "price_per_hour",
    "category_ids": "category_ids",
    "categoryIds": "category_ids",
})


@dataclass(frozen=True)
class TutorFilters:
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    category: Optional[str] = None

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "TutorFilters":
        unknown = [key for key in params if key not in TUTOR_FILTER_FIELDS]
        if unknown:
            raise InvalidFieldError(f"Unknown filter: {', '.join(sorted(unknown))}")

        def _number(key: str) -> Optional[float]:
            value = params.get(key)
            if value is None or value == "":
                return None
            try:
                return float(value)
            except (TypeError, ValueError):
                raise InvalidFieldError(f"{key} must be a number")

        category = params.get("category") or None
        return cls(max_price=_number("max_price"), min_rating=_number("min_rating"), category=category)


def parse_price(value: Any) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InvalidFieldError("price_per_hour must be a number")
    if price < 0:
        raise InvalidFieldError("price_per_hour cannot be negative")
    return price


def profile_to_dict(profile: TutorProfile) -> Dict[str, Any]:
    return {
        "id": str(profile.id),
        "user_id": str(profile.user_id),
        "name": profile.user.name,
        "email": profile.user.email,
        "bio": profile.bio,
        "price_per_hour": profile.price_per_hour,
        "rating": profile.rating,
        "categories": sorted(category.name for category in profile.categories),
    }


def review_to_dict(review: Review) -> Dict[str, Any]:
    return {
        "id": str(review.id),
        "student_id": str(review.student_id),
        "tutor_id": str(review.tutor_id),
        "booking_id": str(review.booking_id) if review.booking_id else None,
        "rating": review.rating,
        "comment": review.comment,
        "created_at": review.created_at.isoformat(),
    }


class TutorService:
    """Tutor browsing and profile management"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tutors(self, filters: TutorFilters) -> List[Dict[str, Any]]:
        query = select(TutorProfile).options(
            selectinload(TutorProfile.user),
            selectinload(TutorProfile.categories)
        )

        if filters.max_price is not None:
            query = query.where(TutorProfile.price_per_hour <= filters.max_price)

        if filters.min_rating is not None:
            query = query.where(TutorProfile.rating >= filters.min_rating)

        if filters.category:
            query = query.where(
                TutorProfile.categories.any(func.lower(Category.name) == filters.category.lower())
            )

        result = await self.db.execute(query.order_by(TutorProfile.rating.desc(), TutorProfile.created_at))
        return [profile_to_dict(profile) for profile in result.scalars().all()]

    async def get_tutor(self, tutor_id: uuid.UUID) -> Dict[str, Any]:
        """Public tutor detail with availability and reviews"""
        result = await self.db.execute(
            select(TutorProfile)
            .where(TutorProfile.id == tutor_id)
            .options(
                selectinload(TutorProfile.user),
                selectinload(TutorProfile.categories),
                selectinload(TutorProfile.availability),
                selectinload(TutorProfile.reviews)
            )
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one_or_none()
        if not profile:
            raise NotFoundError("Tutor not found")

        data = profile_to_dict(profile)
        data["availability"] = [slot_to_dict(slot) for slot in sort_slots(profile.availability)]
        data["reviews"] = [review_to_dict(review) for review in profile.reviews]
        return data

    async def _load_categories(self, category_ids: Any) -> List[Category]:
        if not isinstance(category_ids, list):
            raise InvalidCategoryError("category_ids must be a list")
        try:
            ids = {uuid.UUID(str(value)) for value in category_ids}
        except ValueError:
            raise InvalidCategoryError("One or more category IDs are invalid")

        result = await self.db.execute(select(Category).where(Category.id.in_(ids)))
        categories = list(result.scalars().all())
        if len(categories) != len(ids):
            raise InvalidCategoryError("One or more category IDs are invalid")
        return categories

    @staticmethod
    def _canonical_profile_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for key, value in payload.items():
            field = PROFILE_UPDATE_FIELDS.get(key)
            if field is None:
                raise InvalidFieldError(f"Unknown field: {key}")
            fields[field] = value
        return fields

    async def _reload(self, profile_id: uuid.UUID) -> TutorProfile:
        result = await self.db.execute(
            select(TutorProfile)
            .where(TutorProfile.id == profile_id)
            .options(selectinload(TutorProfile.user), selectinload(TutorProfile.categories))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def create_profile(self, user_id: uuid.UUID, payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields = self._canonical_profile_fields(payload)
        if not fields.get("category_ids"):
            raise InvalidCategoryError("At least one category is required")

        async def unit() -> TutorProfile:
            existing = await self.db.execute(
                select(TutorProfile.id).where(TutorProfile.user_id == user_id)
            )
            if existing.scalar_one_or_none() is not None:
                raise ProfileExistsError("Tutor profile already exists")

            categories = await self._load_categories(fields["category_ids"])
            profile = TutorProfile(
                user_id=user_id,
                bio=fields.get("bio"),
                price_per_hour=parse_price(fields.get("price_per_hour", 0)),
                categories=categories
            )
            self.db.add(profile)
            await self.db.flush()
            return profile

        profile = await run_in_transaction(self.db, unit)
        logger.info(f"Created tutor profile {profile.id} for user {user_id}")
        return profile_to_dict(await self._reload(profile.id))

    async def update_profile(self, user_id: uuid.UUID, payload: Mapping[str, Any]) -> Dict[str, Any]:
        fields = self._canonical_profile_fields(payload)

        async def unit() -> TutorProfile:
            profile = await get_tutor_profile_for_user(self.db, user_id)
            profile = await self._reload(profile.id)

            if "bio" in fields:
                profile.bio = fields["bio"]
            if "price_per_hour" in fields:
                profile.price_per_hour = parse_price(fields["price_per_hour"])
            if fields.get("category_ids"):
                profile.categories = await self._load_categories(fields["category_ids"])

            await self.db.flush()
            return profile

        profile = await run_in_transaction(self.db, unit)
        logger.info(f"Updated tutor profile {profile.id}")
        return profile_to_dict(await self._reload(profile.id))

    async def get_dashboard(self, user_id: uuid.UUID) -> Dict[str, Any]:
        """Tutor's own profile with bookings, reviews and availability"""
        profile = await get_tutor_profile_for_user(self.db, user_id)
        result = await self.db.execute(
            select(TutorProfile)
            .where(TutorProfile.id == profile.id)
            .options(
                selectinload(TutorProfile.user),
                selectinload(TutorProfile.categories),
                selectinload(TutorProfile.availability),
                selectinload(TutorProfile.reviews)
            )
            .execution_options(populate_existing=True)
        )
        profile = result.scalar_one()

        bookings = await self.db.execute(
            select(Booking)
            .where(Booking.tutor_id == profile.id)
            .order_by(Booking.session_date.desc())
        )

        data = profile_to_dict(profile)
        data["bookings"] = [booking_to_dict(booking) for booking in bookings.scalars().all()]
        data["reviews"] = [review_to_dict(review) for review in profile.reviews]
        data["availability"] = [slot_to_dict(slot) for slot in sort_slots(profile.availability)]
        return data
