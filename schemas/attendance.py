from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr
from schemas.enums import AttendanceStatus


# ==========================================================
# [Input schemas]
# ==========================================================
class StudentStatus(BaseModel):
    student_id: str
    student_name: str = ""
    status: AttendanceStatus


class AttendanceSave(BaseModel):
    """One class roll for one day; saving the same class/day again replaces it."""
    date: DateStr
    grade: str
    class_name: str
    records: List[StudentStatus] = Field(default_factory=list)


class ResolveAlert(BaseModel):
    student_id: str
    action: str = Field("resolved", max_length=20)   # call | counselor | warning | resolved


class FollowUpMove(BaseModel):
    student_id: str


# ==========================================================
# [Output schemas]
# ==========================================================
class AttendanceRecord(BaseModel):
    id: int
    date: str
    grade: str
    class_name: str
    staff_id: Optional[int] = None
    records: List[StudentStatus] = []

    model_config = ConfigDict(from_attributes=True)
