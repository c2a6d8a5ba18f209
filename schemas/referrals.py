from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.common import DateStr
from schemas.enums import ReferralStatus


class ReferralCreate(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    referral_date: DateStr
    reason: str = Field(..., min_length=2)
    referred_by: str = Field("deputy", pattern="^(admin|deputy|teacher)$")
    notes: Optional[str] = None


class ReferralText(BaseModel):
    """Outcome (return to deputy) or decision (close)."""
    text: str = ""


class Referral(ReferralCreate):
    id: int
    status: ReferralStatus
    outcome: Optional[str] = None
    decision: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
