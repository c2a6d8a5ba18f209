from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from database.db import Base
from utils.timeutil import utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    target_user_id = Column(String(50), nullable=False, index=True)  # student civil id, staff id or 'ALL'
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(10), nullable=False, default="info")      # alert | info | success
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
