from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ==========================================================
# [Input schemas]
# ==========================================================
class SchoolRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)          # school name
    school_code: str = Field(..., min_length=3, max_length=50)    # login code
    admin_password: str = Field(..., min_length=4)
    logo_url: Optional[str] = None


class SchoolLogin(BaseModel):
    school_code: str


class AdminLogin(BaseModel):
    password: str


class StaffLogin(BaseModel):
    passcode: str


class ParentLogin(BaseModel):
    parent_civil_id: str = Field(..., min_length=5, max_length=20)


class ManagerUpdate(BaseModel):
    manager_name: str = Field(..., min_length=2, max_length=100)


# ==========================================================
# [Output schemas]
# ==========================================================
class School(BaseModel):
    id: int
    name: str
    school_code: str
    logo_url: Optional[str] = None
    manager_name: Optional[str] = None
    plan: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
