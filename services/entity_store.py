"""
services/entity_store.py

School-scoped CRUD over the ORM models.
- Every query is filtered by school_id; a row of another school is "not found".
- Only behavior records, guidance sessions and observations can be deleted.
"""

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.orm import Session

from database.db import Base
from models.appointments import Appointment, AppointmentSlot
from models.attendance import AttendanceRecord
from models.behaviors import BehaviorRecord
from models.excuse_requests import ExcuseRequest
from models.exit_permissions import ExitPermission
from models.guidance_sessions import GuidanceSession
from models.notifications import Notification
from models.observations import StudentObservation
from models.parent_links import ParentLink
from models.referrals import Referral
from models.risk_actions import RiskAction
from models.staff import StaffUser
from models.student_points import StudentPoint
from models.students import Student
from services.exceptions import DeleteNotAllowed, EntityNotFound

logger = logging.getLogger(__name__)


class EntityStore:
    def __init__(self, model: Type[Base], label: str, deletable: bool = False):
        self.model = model
        self.label = label
        self.deletable = deletable

    def query(self, db: Session, school_id: int):
        return db.query(self.model).filter(self.model.school_id == school_id)

    def list_all(self, db: Session, school_id: int, order_by: Optional[str] = None,
                 descending: bool = False, **filters: Any) -> List[Base]:
        """
        filters: column=value (None is ignored, a list/tuple/set becomes IN).
        order_by: column name; rows come back in DB order otherwise.
        """
        q = self.query(db, school_id)
        for column, value in filters.items():
            if value is None:
                continue
            attr = getattr(self.model, column)
            if isinstance(value, (list, tuple, set)):
                q = q.filter(attr.in_(list(value)))
            else:
                q = q.filter(attr == value)
        if order_by:
            col = getattr(self.model, order_by)
            q = q.order_by(col.desc() if descending else col.asc())
        return q.all()

    def get(self, db: Session, school_id: int, entity_id: int) -> Base:
        row = self.query(db, school_id).filter(self.model.id == entity_id).first()
        if row is None:
            raise EntityNotFound(f"{self.label} غير موجود")
        return row

    def create(self, db: Session, school_id: int, data: Dict[str, Any]) -> Base:
        row = self.model(**{**data, "school_id": school_id})
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    def update(self, db: Session, school_id: int, entity_id: int, patch: Dict[str, Any]) -> Base:
        row = self.get(db, school_id, entity_id)
        for key, value in patch.items():
            if key in ("id", "school_id"):
                continue
            setattr(row, key, value)
        db.commit()
        db.refresh(row)
        return row

    def delete(self, db: Session, school_id: int, entity_id: int) -> None:
        if not self.deletable:
            raise DeleteNotAllowed(f"لا يمكن حذف {self.label}")
        row = self.get(db, school_id, entity_id)
        db.delete(row)
        db.commit()
        logger.info("deleted %s id=%s school=%s", self.model.__tablename__, entity_id, school_id)


# ==========================================================
# Stores per entity
# ==========================================================
students = EntityStore(Student, "الطالب")
staff = EntityStore(StaffUser, "المستخدم")
attendance = EntityStore(AttendanceRecord, "سجل الحضور")
requests = EntityStore(ExcuseRequest, "طلب العذر")
behaviors = EntityStore(BehaviorRecord, "المخالفة", deletable=True)
observations = EntityStore(StudentObservation, "الملاحظة", deletable=True)
referrals = EntityStore(Referral, "الإحالة")
guidance = EntityStore(GuidanceSession, "الجلسة الإرشادية", deletable=True)
exit_permissions = EntityStore(ExitPermission, "إذن الخروج")
slots = EntityStore(AppointmentSlot, "الموعد")
appointments = EntityStore(Appointment, "الحجز")
notifications = EntityStore(Notification, "الإشعار")
points = EntityStore(StudentPoint, "النقاط")
parent_links = EntityStore(ParentLink, "الربط")
risk_actions = EntityStore(RiskAction, "الإجراء")
