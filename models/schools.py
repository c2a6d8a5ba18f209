from sqlalchemy import Column, Integer, String, DateTime
from database.db import Base
from utils.timeutil import utcnow


class School(Base):
    __tablename__ = "schools"  # tenant table

    id = Column(Integer, primary_key=True, index=True)              # school id (tenant key)
    name = Column(String(200), nullable=False)                     # school name
    school_code = Column(String(50), nullable=False, unique=True)   # login code (e.g. ZENKI)
    admin_password = Column(String(200), nullable=False)            # admin dashboard password
    logo_url = Column(String(500))                                  # logo
    manager_name = Column(String(100))                              # principal name (report signatures)
    contact_phone = Column(String(20))
    plan = Column(String(10), nullable=False, default="free")       # free | pro
    created_at = Column(DateTime, nullable=False, default=utcnow)
