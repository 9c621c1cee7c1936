from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: str = Field(..., description="student, tutor or admin")
    is_banned: bool = Field(..., description="Whether the user is banned")
    created_at: str = Field(..., description="Creation time")


class UserBanRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_banned: bool = Field(..., description="Ban (true) or unban (false)")


class CategoryCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Category name")


class CategoryResponse(BaseModel):
    id: str = Field(..., description="Category ID")
    name: str = Field(..., description="Category name")
