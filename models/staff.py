from sqlalchemy import Column, Integer, String, JSON
from database.db import Base


class StaffUser(Base):
    __tablename__ = "staff"  # teachers, deputies and counselors

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    passcode = Column(String(50), nullable=False)                  # login is by passcode only
    assignments = Column(JSON, nullable=False, default=list)       # [{"grade": ..., "class_name": ...}]
    permissions = Column(JSON, nullable=False, default=list)       # feature keys: attendance, requests, reports, deputy, students ...
