from sqlalchemy import Column, Integer, String
from database.db import Base


class ParentLink(Base):
    __tablename__ = "parent_links"  # guardian civil id ↔ student civil id

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Integer, nullable=False, index=True)
    parent_civil_id = Column(String(20), nullable=False, index=True)
    student_id = Column(String(20), nullable=False)
