from pydantic import BaseModel, Field
from typing import List


class AvailabilitySlotResponse(BaseModel):
    id: str = Field(..., description="Slot ID")
    tutor_id: str = Field(..., description="Tutor profile ID")
    day: str = Field(..., description="Canonical day name, e.g. Monday")
    start_time: str = Field(..., description="Start time in HH:mm (UTC)")
    end_time: str = Field(..., description="End time in HH:mm (UTC)")


class AvailabilitySetResponse(BaseModel):
    created: int = Field(..., description="Number of slots actually created")
    slots: List[AvailabilitySlotResponse] = Field(..., description="All slots of the tutor after the update")
