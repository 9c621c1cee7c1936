from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional
from enum import Enum


class BookingStatus(str, Enum):
    UPCOMING = "UPCOMING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tutor_id: str = Field(
        ...,
        validation_alias=AliasChoices("tutor_id", "tutorId"),
        description="Tutor profile ID"
    )
    session_date: str = Field(
        ...,
        validation_alias=AliasChoices("session_date", "sessionDate"),
        description="Session start as an ISO-8601 instant"
    )


class BookingResponse(BaseModel):
    id: str = Field(..., description="Booking ID")
    student_id: str = Field(..., description="Student user ID")
    tutor_id: str = Field(..., description="Tutor profile ID")
    session_date: str = Field(..., description="Session start (UTC)")
    status: BookingStatus = Field(..., description="Booking status")
    created_at: Optional[str] = Field(None, description="Creation time")


class BookingUserSummary(BaseModel):
    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")


class BookingTutorSummary(BaseModel):
    id: str = Field(..., description="Tutor profile ID")
    bio: Optional[str] = Field(None, description="Tutor bio")
    price_per_hour: float = Field(..., description="Hourly price")
    rating: float = Field(..., description="Average rating")
    user: BookingUserSummary = Field(..., description="Tutor's user profile")


class BookingDetailResponse(BookingResponse):
    tutor: BookingTutorSummary = Field(..., description="Tutor with user profile")
    student: Optional[BookingUserSummary] = Field(None, description="Student")
