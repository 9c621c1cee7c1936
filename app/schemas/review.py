from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional


class ReviewCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tutor_id: str = Field(
        ...,
        validation_alias=AliasChoices("tutor_id", "tutorId"),
        description="Tutor profile ID"
    )
    rating: int = Field(..., description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Review text")


class ReviewResponse(BaseModel):
    id: str = Field(..., description="Review ID")
    student_id: str = Field(..., description="Student user ID")
    tutor_id: str = Field(..., description="Tutor profile ID")
    booking_id: Optional[str] = Field(None, description="Completed booking the review is attached to")
    rating: int = Field(..., description="Rating from 1 to 5")
    comment: Optional[str] = Field(None, description="Review text")
    created_at: str = Field(..., description="Creation time")
