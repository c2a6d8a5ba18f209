from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database.db import Base
from utils.timeutil import utcnow


class AppointmentSlot(Base):
    __tablename__ = "appointment_slots"  # parent visit slots

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)
    start_time = Column(String(5), nullable=False)                 # HH:MM
    end_time = Column(String(5), nullable=False)
    max_capacity = Column(Integer, nullable=False, default=3)
    current_bookings = Column(Integer, nullable=False, default=0)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    slot_id = Column(Integer, ForeignKey("appointment_slots.id"), nullable=False)
    student_id = Column(String(20), nullable=False)
    student_name = Column(String(100), nullable=False)
    parent_name = Column(String(100), nullable=False)
    parent_civil_id = Column(String(20), nullable=False, index=True)
    visit_reason = Column(String(300), nullable=False)
    status = Column(String(10), nullable=False, default="pending")  # pending | completed | cancelled | missed
    arrived_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # ✅ joined slot (date/time shown on the visitor pass)
    slot = relationship(AppointmentSlot, lazy="joined")
