from typing import List
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import http_error, internal_error, parse_id
from app.core.auth import require_role
from app.core.database import get_db
from app.core.exceptions import TutorHubException
from app.models.user import User, UserRole
from app.schemas.review import ReviewCreateRequest, ReviewResponse
from app.services.review_service import ReviewService
from app.services.tutor_service import review_to_dict

router = APIRouter()


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    request: ReviewCreateRequest,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Review a tutor after a completed session"""
    try:
        tutor_id = parse_id(request.tutor_id, "Tutor")
        review = await ReviewService(db).create_review(
            current_user.id,
            tutor_id,
            request.rating,
            request.comment
        )
        return review_to_dict(review)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("create review", e)


@router.get("/tutor/{tutor_id}", response_model=List[ReviewResponse])
async def get_reviews_for_tutor(
    tutor_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """Public list of a tutor's reviews, newest first"""
    try:
        reviews = await ReviewService(db).get_reviews_for_tutor(tutor_id)
        return [review_to_dict(review) for review in reviews]
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch reviews", e)


@router.get("/booking/{booking_id}", response_model=ReviewResponse)
async def get_review_by_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db)
):
    """Public review attached to a completed booking"""
    try:
        review = await ReviewService(db).get_review_by_booking(booking_id)
        return review_to_dict(review)
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch review", e)
