from sqlalchemy import Column, Integer, String, DateTime
from database.db import Base
from utils.timeutil import utcnow


class StudentPoint(Base):
    __tablename__ = "student_points"  # excellence points ledger

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    reason = Column(String(300), nullable=False)
    type = Column(String(20), nullable=False)                      # behavior | attendance | academic | honor
    created_at = Column(DateTime, nullable=False, default=utcnow)
