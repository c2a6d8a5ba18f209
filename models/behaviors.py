from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from database.db import Base
from utils.timeutil import utcnow


class BehaviorRecord(Base):
    __tablename__ = "behaviors"  # append-only violation log

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    date = Column(String(10), nullable=False)
    violation_degree = Column(String(50), nullable=False)          # first, second, third ...
    violation_name = Column(String(200), nullable=False)
    article_number = Column(String(50))
    action_taken = Column(String(300), nullable=False)
    notes = Column(Text)
    staff_id = Column(Integer)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    parent_viewed = Column(Boolean, nullable=False, default=False)  # one-way acknowledgement
    parent_feedback = Column(Text)
    parent_viewed_at = Column(DateTime)
