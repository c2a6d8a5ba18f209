from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr


class GuidanceCreate(BaseModel):
    student_id: str
    student_name: str
    date: DateStr
    session_type: str = Field("individual", pattern="^(individual|group|parent_meeting)$")
    topic: str = Field(..., min_length=2, max_length=200)
    recommendations: str = ""
    status: str = Field("ongoing", pattern="^(ongoing|completed)$")


class GuidanceUpdate(BaseModel):
    session_type: Optional[str] = Field(default=None, pattern="^(individual|group|parent_meeting)$")
    topic: Optional[str] = None
    recommendations: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern="^(ongoing|completed)$")


class Guidance(GuidanceCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
