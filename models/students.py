from sqlalchemy import Column, Integer, String, UniqueConstraint
from database.db import Base


class Student(Base):
    __tablename__ = "students"  # student master table
    __table_args__ = (UniqueConstraint("school_id", "student_id", name="uq_students_school_student"),)

    id = Column(Integer, primary_key=True, index=True)              # row id
    school_id = Column(Integer, nullable=False, index=True)         # tenant
    student_id = Column(String(20), nullable=False, index=True)     # civil id, the join key everywhere
    name = Column(String(100), nullable=False)                     # student name
    grade = Column(String(50), nullable=False)                     # grade (e.g. الأول متوسط)
    class_name = Column(String(20), nullable=False)                # class (e.g. 1)
    phone = Column(String(20), default="")                         # guardian phone
