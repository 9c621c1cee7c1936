from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.api.errors import http_error, internal_error
from app.core.auth import require_role
from app.core.database import get_db
from app.core.exceptions import TutorHubException
from app.models.user import User, UserRole
from app.schemas.admin import CategoryCreateRequest, CategoryResponse, UserBanRequest, UserResponse
from app.schemas.booking import BookingDetailResponse
from app.services.admin_service import AdminService
from app.services.scheduling_service import booking_detail_to_dict

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


@router.get("/users", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """List all users"""
    try:
        return await AdminService(db).list_users()
    except Exception as e:
        raise internal_error("fetch users", e)


@router.patch("/users/{user_id}/ban", response_model=UserResponse)
async def update_user_ban(
    user_id: uuid.UUID,
    request: UserBanRequest,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """Ban or unban a user"""
    try:
        return await AdminService(db).set_user_banned(user_id, request.is_banned)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("update user", e)


@router.get("/bookings", response_model=List[BookingDetailResponse])
async def list_all_bookings(
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """List every booking, newest first"""
    try:
        bookings = await AdminService(db).list_bookings()
        return [booking_detail_to_dict(booking) for booking in bookings]
    except Exception as e:
        raise internal_error("fetch bookings", e)


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories(
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """List categories"""
    try:
        return await AdminService(db).list_categories()
    except Exception as e:
        raise internal_error("fetch categories", e)


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    current_user: User = Depends(admin_only),
    db: AsyncSession = Depends(get_db)
):
    """Create a category"""
    try:
        return await AdminService(db).create_category(request.name)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("create category", e)
