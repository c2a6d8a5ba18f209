from sqlalchemy import Column, Integer, String, DateTime
from database.db import Base
from utils.timeutil import utcnow


class UserSession(Base):
    __tablename__ = "user_sessions"  # opaque session tokens, no expiry

    token = Column(String(64), primary_key=True)
    school_id = Column(Integer, nullable=False, index=True)
    role = Column(String(10), nullable=False)                      # visitor | admin | staff | parent
    staff_id = Column(Integer)
    parent_civil_id = Column(String(20))
    created_at = Column(DateTime, nullable=False, default=utcnow)
