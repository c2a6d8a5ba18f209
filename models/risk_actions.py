from sqlalchemy import Column, Integer, String, DateTime
from database.db import Base
from utils.timeutil import utcnow


class RiskAction(Base):
    __tablename__ = "risk_actions"  # persisted "resolved" marks for the at-risk list

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    action_type = Column(String(20), nullable=False)               # call | counselor | warning | resolved
    resolved_at = Column(DateTime, nullable=False, default=utcnow)
