"""
services/attendance_service.py

DB side of attendance: load rows as analytics record types, save a class roll
and emit the notifications that go with it.
"""

import logging
from datetime import timedelta
from typing import List, Optional, Type

from sqlalchemy import or_
from sqlalchemy.orm import Session

from config.settings import settings
from models.attendance import AttendanceRecord
from models.excuse_requests import ExcuseRequest
from models.risk_actions import RiskAction
from schemas.enums import AttendanceStatus
from services import entity_store, notifications
from services.analytics.absences import (
    RiskList, approved_excuse, build_risk_list, detect_runs, live_excuse, run_for_student,
)
from services.analytics.attendance import DailyAttendance, FullDailyAttendance
from services.analytics.excuses import ExcuseIndex
from utils.timeutil import utcnow

logger = logging.getLogger(__name__)


def load_records(db: Session, school_id: int, kind: Type[DailyAttendance] = FullDailyAttendance,
                 **filters) -> List[DailyAttendance]:
    rows = entity_store.attendance.list_all(db, school_id, order_by="date", **filters)
    return [kind.from_row(r) for r in rows]


def find_class_record(db: Session, school_id: int, date: str, grade: str, class_name: str) -> Optional[AttendanceRecord]:
    rows = entity_store.attendance.list_all(db, school_id, date=date, grade=grade, class_name=class_name)
    return rows[0] if rows else None


def save_class_roll(db: Session, school_id: int, staff_id: Optional[int], date: str, grade: str,
                    class_name: str, entries: List[dict]) -> AttendanceRecord:
    """
    Insert or replace the roll for (date, grade, class), then notify:
      - every ABSENT / LATE student's parent
      - parent + deputies/counselors when an unexcused run reaches exactly the threshold
    """
    existing = find_class_record(db, school_id, date, grade, class_name)
    data = {"date": date, "grade": grade, "class_name": class_name, "staff_id": staff_id, "records": entries}
    if existing is None:
        row = entity_store.attendance.create(db, school_id, data)
    else:
        row = entity_store.attendance.update(db, school_id, existing.id, data)
    logger.info("attendance saved school=%s %s %s-%s entries=%d", school_id, date, grade, class_name, len(entries))

    drafts = []
    absent_ids = [e["student_id"] for e in entries if e["status"] == AttendanceStatus.ABSENT]
    history = load_records(db, school_id, grade=grade, class_name=class_name) if absent_ids else []
    excuses = ExcuseIndex(entity_store.requests.list_all(db, school_id, student_id=absent_ids)) if absent_ids else None
    staff = entity_store.staff.list_all(db, school_id) if absent_ids else []

    for e in entries:
        draft = notifications.daily_attendance(e["student_id"], e.get("student_name", ""), e["status"], date)
        if draft is not None:
            drafts.append(draft)
        if e["status"] != AttendanceStatus.ABSENT:
            continue
        run = run_for_student(history, e["student_id"], breaks_run=live_excuse(excuses))
        if run.days == settings.RISK_STREAK_THRESHOLD:
            logger.info("absence streak reached for student=%s days=%d", e["student_id"], run.days)
            drafts.extend(notifications.streak_alerts(e["student_id"], e.get("student_name", ""), grade, run.days, staff))

    notifications.send_many(db, school_id, drafts)
    return row


def resolved_student_ids(db: Session, school_id: int) -> set:
    """Students with a resolve action inside the window; they stay off the risk list."""
    cutoff = utcnow() - timedelta(days=settings.RISK_RESOLVE_WINDOW_DAYS)
    rows = entity_store.risk_actions.query(db, school_id).filter(RiskAction.resolved_at >= cutoff).all()
    return {r.student_id for r in rows}


def current_risk_list(db: Session, school_id: int, follow_up_ids=()) -> RiskList:
    records = load_records(db, school_id)
    excuses = ExcuseIndex(entity_store.requests.list_all(db, school_id))
    runs = detect_runs(records, settings.RISK_STREAK_THRESHOLD, breaks_run=approved_excuse(excuses))
    return build_risk_list(runs, excuses, resolved_student_ids(db, school_id), follow_up_ids)


def requests_for_student(db: Session, school_id: int, student) -> list:
    """The student's requests, including legacy rows that only carry the name."""
    return (
        entity_store.requests.query(db, school_id)
        .filter(or_(ExcuseRequest.student_id == student.student_id, ExcuseRequest.student_name == student.name))
        .all()
    )
