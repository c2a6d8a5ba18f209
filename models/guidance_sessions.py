from sqlalchemy import Column, Integer, String, Text
from database.db import Base


class GuidanceSession(Base):
    __tablename__ = "guidance_sessions"  # counselor sessions

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    date = Column(String(10), nullable=False)
    session_type = Column(String(20), nullable=False)              # individual | group | parent_meeting
    topic = Column(String(200), nullable=False)
    recommendations = Column(Text, default="")
    status = Column(String(10), nullable=False, default="ongoing")  # ongoing | completed
