from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List
import uuid

from app.api.errors import http_error, internal_error
from app.core.auth import require_role
from app.core.database import get_db
from app.core.exceptions import TutorHubException
from app.models.user import User, UserRole
from app.schemas.availability import AvailabilitySetResponse, AvailabilitySlotResponse
from app.services.availability_service import AvailabilityService
from app.services.profile_lookup import get_tutor_profile_for_user

router = APIRouter()


@router.get("", response_model=List[AvailabilitySlotResponse])
async def get_my_availability(
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Get the calling tutor's weekly availability"""
    try:
        profile = await get_tutor_profile_for_user(db, current_user.id)
        return await AvailabilityService(db).list_for_tutor(profile.id)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("fetch availability", e)


@router.put("", response_model=AvailabilitySetResponse)
async def set_availability(
    slots: Any = Body(..., description="A slot or a list of slots: {day, startTime, endTime}"),
    replace: bool = Query(False, description="Replace all existing slots instead of merging"),
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Add slots to (or replace) the calling tutor's availability"""
    try:
        profile = await get_tutor_profile_for_user(db, current_user.id)
        return await AvailabilityService(db).set_availability(profile.id, slots, replace=replace)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("set availability", e)


@router.patch("/{slot_id}", response_model=AvailabilitySlotResponse)
async def update_availability(
    slot_id: uuid.UUID,
    payload: Dict[str, Any] = Body(..., description="Any of day, startTime, endTime"),
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Update one availability slot"""
    try:
        profile = await get_tutor_profile_for_user(db, current_user.id)
        return await AvailabilityService(db).update_one(profile.id, slot_id, payload)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("update availability", e)


@router.delete("/{slot_id}", response_model=AvailabilitySlotResponse)
async def remove_availability(
    slot_id: uuid.UUID,
    current_user: User = Depends(require_role(UserRole.TUTOR)),
    db: AsyncSession = Depends(get_db)
):
    """Delete one availability slot"""
    try:
        profile = await get_tutor_profile_for_user(db, current_user.id)
        return await AvailabilityService(db).remove_one(profile.id, slot_id)
    except HTTPException:
        raise
    except TutorHubException as e:
        raise http_error(e)
    except Exception as e:
        raise internal_error("remove availability", e)
