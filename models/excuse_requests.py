from sqlalchemy import Column, Integer, String, Text, DateTime
from database.db import Base
from utils.timeutil import utcnow


class ExcuseRequest(Base):
    __tablename__ = "requests"  # absence excuse requests filed by parents

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), index=True)                    # may be empty on legacy rows
    student_name = Column(String(100), nullable=False)             # denormalized
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    date = Column(String(10), nullable=False, index=True)          # absence date
    reason = Column(String(200), nullable=False)
    details = Column(Text)
    attachment_name = Column(String(200))
    attachment_url = Column(String(500))
    status = Column(String(10), nullable=False, default="PENDING")  # PENDING | APPROVED | REJECTED
    submission_date = Column(DateTime, nullable=False, default=utcnow)
