from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List, Optional
import uuid

from app.api.errors import http_error, internal_error
from app.core.auth import require_role
from app.core.database import get_db
from app.core.exceptions import TutorHubException
from app.models.user import User, UserRole
from app.schemas.tutor import TutorDashboardResponse, TutorDetailResponse, TutorListResponse
from app.services.tutor_service import TutorFilters, TutorService

router = APIRouter()


@router.get("", response_model=List[TutorListResponse])
async def list_tutors(
    request: Request,
    max_price: Optional[float] = Query(None, description="Maximum hourly price"),
    min_rating: Optional[float] = Query(None, description="Minimum rating"),
    category: Optional[str] = Query(None, description="Category name"),
    db: AsyncSession = Depends(get_db)
):
    """Browse tutors with optional filters"""
    try:
        # Unrecognized query keys are rejected rather than ignored
        filters = TutorFilters.from_query(dict(request.query_params))
        return await TutorService(db).list_tutors(filters)
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch tutors", e)


@router.get("/dashboard/me", response_model=TutorDashboardResponse)
async def get_tutor_dashboard(
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """The calling tutor's profile, bookings, reviews and availability"""
    try:
        return await TutorService(db).get_dashboard(current_user.id)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch tutor dashboard", e)


@router.post("/profile", response_model=TutorListResponse, status_code=status.HTTP_201_CREATED)
async def create_tutor_profile(
    payload: Dict[str, Any] = Body(..., description="bio, price_per_hour, category_ids"),
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Create the calling tutor's profile"""
    try:
        return await TutorService(db).create_profile(current_user.id, payload)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("create tutor profile", e)


@router.patch("/profile", response_model=TutorListResponse)
async def update_tutor_profile(
    payload: Dict[str, Any] = Body(..., description="Any of bio, price_per_hour, category_ids"),
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Update the calling tutor's profile"""
    try:
        return await TutorService(db).update_profile(current_user.id, payload)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("update tutor profile", e)


@router.get("/{tutor_id}", response_model=TutorDetailResponse)
async def get_tutor_details(
    tutor_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """Public tutor profile with availability and reviews"""
    try:
        return await TutorService(db).get_tutor(tutor_id)
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch tutor profile", e)
