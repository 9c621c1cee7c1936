from app.core.database import Base
from .user import User, UserRole
from .tutor_profile import TutorProfile, Category, tutor_categories
from .availability import AvailabilitySlot
from .booking import Booking, BookingStatus
from .review import Review

__all__ = [
    "Base",

    # Core models
    "User",
    "UserRole",
    "TutorProfile",
    "Category",
    "tutor_categories",

    # Availability and booking
    "AvailabilitySlot",
    "Booking",
    "BookingStatus",

    # Feedback
    "Review",
]
