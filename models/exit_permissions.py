from sqlalchemy import Column, Integer, String, DateTime
from database.db import Base
from utils.timeutil import utcnow


class ExitPermission(Base):
    __tablename__ = "exit_permissions"  # early pick-up permits checked at the gate

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    parent_name = Column(String(100), nullable=False)
    parent_phone = Column(String(20), nullable=False)
    reason = Column(String(300))
    created_by = Column(String(50), nullable=False)
    created_by_name = Column(String(100))
    status = Column(String(20), nullable=False, default="pending_pickup")  # pending_pickup | completed | expired
    created_at = Column(DateTime, nullable=False, default=utcnow)
    completed_at = Column(DateTime)
