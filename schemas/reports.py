from typing import Optional

from pydantic import BaseModel, Field


# ==========================================================
# [AI report requests]
# ==========================================================
class StudentReportRequest(BaseModel):
    student_id: str


class BehaviorSuggestionRequest(BaseModel):
    student_id: str
    violation_name: str = Field(..., min_length=2)


class GuidancePlanRequest(BaseModel):
    student_id: str
    history: Optional[str] = Field(default=None, description="case notes; built from the student's records when empty")


class SentimentRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


# ==========================================================
# [AI report response]
# ==========================================================
class ReportText(BaseModel):
    text: str
