from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr
from schemas.enums import ObservationType


class ObservationCreate(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    date: DateStr
    type: ObservationType
    content: str = Field(..., min_length=2)


class ObservationUpdate(BaseModel):
    type: Optional[ObservationType] = None
    content: Optional[str] = None


class Observation(ObservationCreate):
    id: int
    staff_id: Optional[int] = None
    staff_name: Optional[str] = None
    created_at: Optional[datetime] = None
    parent_viewed: bool = False
    parent_feedback: Optional[str] = None
    parent_viewed_at: Optional[datetime] = None
    sentiment: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
