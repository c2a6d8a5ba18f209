from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ✅ input (POST/PUT)
class StudentCreate(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=20)   # civil id
    name: str = Field(..., min_length=1, max_length=100)
    grade: str
    class_name: str
    phone: Optional[str] = ""                                   # guardian phone


class StudentUpdate(BaseModel):
    name: Optional[str] = None
    grade: Optional[str] = None
    class_name: Optional[str] = None
    phone: Optional[str] = None


# ✅ bulk import: rows are upserted on (school, student_id)
class StudentBatch(BaseModel):
    students: List[StudentCreate]


# ✅ output
class Student(StudentCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
