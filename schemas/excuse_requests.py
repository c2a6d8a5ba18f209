from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr
from schemas.enums import RequestStatus


class ExcuseRequestCreate(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    date: DateStr                                   # the absence date
    reason: str = Field(..., min_length=2, max_length=200)
    details: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_url: Optional[str] = None


class RequestStatusUpdate(BaseModel):
    status: RequestStatus


class ExcuseRequest(ExcuseRequestCreate):
    id: int
    status: RequestStatus
    submission_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
