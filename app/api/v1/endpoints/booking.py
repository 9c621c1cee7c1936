from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from app.api.errors import http_error, internal_error, parse_id
from app.core.auth import require_role
from app.core.database import get_db
from app.core.exceptions import NotFoundError, TutorHubException
from app.models.user import User, UserRole
from app.schemas.booking import BookingCreateRequest, BookingDetailResponse, BookingResponse
from app.services.scheduling_service import SchedulingService, booking_detail_to_dict, booking_to_dict

router = APIRouter()


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    request: BookingCreateRequest,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Book a one-hour session with a tutor"""
    try:
        tutor_id = parse_id(request.tutor_id, "Tutor")
        booking = await SchedulingService(db).create_booking(
            current_user.id,
            tutor_id,
            request.session_date
        )
        return booking_to_dict(booking)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("create booking", e)


@router.get("", response_model=List[BookingDetailResponse])
async def get_my_bookings(
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """List the calling student's bookings, newest first"""
    try:
        bookings = await SchedulingService(db).get_my_bookings(current_user.id)
        return [booking_detail_to_dict(booking) for booking in bookings]
    except Exception as e:
        raise internal_error("fetch bookings", e)


@router.get("/{booking_id}", response_model=BookingDetailResponse)
async def get_booking_details(
    booking_id: uuid.UUID,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Get one of the calling student's bookings"""
    try:
        booking = await SchedulingService(db).get_booking_by_id(booking_id, current_user.id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking_detail_to_dict(booking)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch booking", e)


@router.patch("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: uuid.UUID,
    current_user: User = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db)
):
    """Cancel one of the calling student's bookings"""
    try:
        booking = await SchedulingService(db).cancel_booking(booking_id, current_user.id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking_to_dict(booking)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("cancel booking", e)


@router.patch("/{booking_id}/complete", response_model=BookingResponse)
async def complete_booking(
    booking_id: uuid.UUID,
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Mark a session as completed (tutor only)"""
    try:
        booking = await SchedulingService(db).complete_booking(booking_id, current_user.id)
        return booking_to_dict(booking)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("complete booking", e)
