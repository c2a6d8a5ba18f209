from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from database.db import Base
from utils.timeutil import utcnow


class StudentObservation(Base):
    __tablename__ = "observations"  # teacher notes about a student

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    date = Column(String(10), nullable=False)
    type = Column(String(20), nullable=False)                      # academic | behavioral | positive | general
    content = Column(Text, nullable=False)
    staff_id = Column(Integer)
    staff_name = Column(String(100))
    created_at = Column(DateTime, nullable=False, default=utcnow)
    parent_viewed = Column(Boolean, nullable=False, default=False)
    parent_feedback = Column(Text)
    parent_viewed_at = Column(DateTime)
    sentiment = Column(String(10))                                 # positive | negative | neutral (AI)
