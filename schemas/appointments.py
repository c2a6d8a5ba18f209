from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr, TimeStr
from schemas.enums import AppointmentStatus


# ==========================================================
# [Slots]
# ==========================================================
class SlotCreate(BaseModel):
    date: DateStr
    start_time: TimeStr
    end_time: TimeStr
    max_capacity: int = Field(3, ge=1, le=50)


class SlotUpdate(BaseModel):
    start_time: Optional[TimeStr] = None
    end_time: Optional[TimeStr] = None
    max_capacity: Optional[int] = Field(default=None, ge=1, le=50)


class GenerateSlots(BaseModel):
    date: DateStr


class Slot(SlotCreate):
    id: int
    current_bookings: int = 0

    model_config = ConfigDict(from_attributes=True)


# ==========================================================
# [Bookings]
# ==========================================================
class AppointmentCreate(BaseModel):
    slot_id: int
    student_id: str
    student_name: str
    parent_name: str = Field(..., min_length=2)
    visit_reason: str = Field(..., min_length=2, max_length=300)


class Appointment(BaseModel):
    id: int
    slot_id: int
    student_id: str
    student_name: str
    parent_name: str
    parent_civil_id: str
    visit_reason: str
    status: AppointmentStatus
    arrived_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    slot: Optional[Slot] = None

    model_config = ConfigDict(from_attributes=True)
