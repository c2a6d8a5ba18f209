from sqlalchemy import Column, Integer, String, JSON, UniqueConstraint
from database.db import Base


class AttendanceRecord(Base):
    __tablename__ = "attendance"  # one row per class per date
    __table_args__ = (
        UniqueConstraint("school_id", "date", "grade", "class_name", name="uq_attendance_class_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)          # YYYY-MM-DD, compared lexically
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    staff_id = Column(Integer)                                     # who took the roll
    records = Column(JSON, nullable=False, default=list)           # [{"student_id", "student_name", "status"}]
