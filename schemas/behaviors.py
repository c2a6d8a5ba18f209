from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr


class BehaviorCreate(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    date: DateStr
    violation_degree: str
    violation_name: str = Field(..., min_length=2, max_length=200)
    article_number: Optional[str] = None
    action_taken: str
    notes: Optional[str] = None


class BehaviorUpdate(BaseModel):
    violation_degree: Optional[str] = None
    violation_name: Optional[str] = None
    article_number: Optional[str] = None
    action_taken: Optional[str] = None
    notes: Optional[str] = None


class ParentAcknowledge(BaseModel):
    feedback: Optional[str] = Field(default=None, max_length=1000)


class Behavior(BehaviorCreate):
    id: int
    staff_id: Optional[int] = None
    created_at: Optional[datetime] = None
    parent_viewed: bool = False
    parent_feedback: Optional[str] = None
    parent_viewed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
