from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PointsCreate(BaseModel):
    student_id: str
    points: int = Field(..., ge=1, le=100)
    reason: str = Field(..., min_length=2, max_length=300)
    type: str = Field("behavior", pattern="^(behavior|attendance|academic|honor)$")


class StudentPoint(PointsCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
