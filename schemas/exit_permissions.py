from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.enums import ExitStatus


class ExitPermissionCreate(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    parent_name: str = Field(..., min_length=2)
    parent_phone: str = Field(..., min_length=5)
    reason: Optional[str] = None


class ExitPermission(ExitPermissionCreate):
    id: int
    created_by: str
    created_by_name: Optional[str] = None
    status: ExitStatus
    created_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
