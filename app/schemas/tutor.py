from pydantic import BaseModel, Field
from typing import Optional, List

from app.schemas.availability import AvailabilitySlotResponse
from app.schemas.booking import BookingResponse
from app.schemas.review import ReviewResponse


class TutorListResponse(BaseModel):
    id: str = Field(..., description="Tutor profile ID")
    user_id: str = Field(..., description="Tutor user ID")
    name: str = Field(..., description="Tutor name")
    email: str = Field(..., description="Tutor email")
    bio: Optional[str] = Field(None, description="Tutor bio")
    price_per_hour: float = Field(..., description="Hourly price")
    rating: float = Field(..., description="Average rating")
    categories: List[str] = Field(default_factory=list, description="Subjects taught")


class TutorDetailResponse(TutorListResponse):
    availability: List[AvailabilitySlotResponse] = Field(default_factory=list, description="Weekly availability")
    reviews: List[ReviewResponse] = Field(default_factory=list, description="Student reviews")


class TutorDashboardResponse(TutorDetailResponse):
    bookings: List[BookingResponse] = Field(default_factory=list, description="Bookings, latest session first")
