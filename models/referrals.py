from sqlalchemy import Column, Integer, String, Text, DateTime
from database.db import Base
from utils.timeutil import utcnow


class Referral(Base):
    __tablename__ = "referrals"  # deputy/teacher → counselor case

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    student_id = Column(String(20), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    grade = Column(String(50), nullable=False)
    class_name = Column(String(20), nullable=False)
    referral_date = Column(String(10), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending | in_progress | returned_to_deputy | resolved
    referred_by = Column(String(10), nullable=False)               # admin | deputy | teacher
    notes = Column(Text)
    outcome = Column(Text)                                         # counselor's result
    decision = Column(Text)                                        # deputy's final decision
    created_at = Column(DateTime, nullable=False, default=utcnow)
