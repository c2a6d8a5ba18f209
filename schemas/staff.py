from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClassAssignment(BaseModel):
    grade: str
    class_name: str


class StaffCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    passcode: str = Field(..., min_length=4, max_length=50)
    assignments: List[ClassAssignment] = []
    permissions: List[str] = []


class StaffUpdate(BaseModel):
    name: Optional[str] = None
    passcode: Optional[str] = None
    assignments: Optional[List[ClassAssignment]] = None
    permissions: Optional[List[str]] = None


class Staff(BaseModel):
    id: int
    name: str
    assignments: List[ClassAssignment] = []
    permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)
