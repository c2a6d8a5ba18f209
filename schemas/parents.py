from pydantic import BaseModel, Field


class ParentLinkCreate(BaseModel):
    student_id: str = Field(..., min_length=5, max_length=20)
