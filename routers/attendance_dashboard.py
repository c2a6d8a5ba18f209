import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import SessionContext, require_admin, require_permission, require_staff
from schemas.attendance import FollowUpMove, ResolveAlert
from schemas.common import DATE_PATTERN, ok
from schemas.enums import PERM_DEPUTY
from services import attendance_service, entity_store
from services.analytics import summary
from services.analytics.absences import absence_profiles
from services.analytics.attendance import SparseDailyAttendance
from services.analytics.excuses import ExcuseIndex
from services.follow_up import follow_up
from utils.timeutil import today_str

router = APIRouter(prefix="/dashboard", tags=["Attendance dashboards"])
logger = logging.getLogger(__name__)


def _assigned_roster(db: Session, ctx: SessionContext) -> list:
    assigned = set(ctx.assignments)
    return [s for s in entity_store.students.list_all(db, ctx.school_id) if (s.grade, s.class_name) in assigned]


# ==========================================================
# [1] Admin
# ==========================================================

# ✅ [STATS] rates, class rankings, 7-day trend, top-5 lists
@router.get("/admin-stats")
def admin_stats(ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    records = attendance_service.load_records(db, ctx.school_id)
    stats = summary.admin_stats(
        records,
        entity_store.behaviors.list_all(db, ctx.school_id),
        entity_store.observations.list_all(db, ctx.school_id),
        k=settings.TOP_N,
        trend_days=settings.TREND_DAYS,
    )
    return ok(stats.model_dump())


# ==========================================================
# [2] Teacher (assigned classes only)
# ==========================================================

# ✅ [REPORT] one day over the assigned roster
@router.get("/teacher-report")
def teacher_report(date: Optional[str] = Query(default=None, pattern=DATE_PATTERN), ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    day = date or today_str()
    records = attendance_service.load_records(db, ctx.school_id, kind=SparseDailyAttendance, date=day)
    report = summary.teacher_daily_report(
        day,
        records,
        _assigned_roster(db, ctx),
        entity_store.requests.list_all(db, ctx.school_id, date=day),
        ctx.assignments,
    )
    return ok(report.model_dump())


# ✅ [STATS] explicit entries of the assigned classes
@router.get("/teacher-stats")
def teacher_stats(ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    records = attendance_service.load_records(db, ctx.school_id)
    return ok(summary.teacher_stats(records, ctx.assignments, k=settings.TOP_N).model_dump())


# ==========================================================
# [3] Deputy / monitor / risk list
# ==========================================================

# ✅ [STATS] deputy home figures
@router.get("/deputy-stats")
def deputy_stats(ctx: SessionContext = Depends(require_permission(PERM_DEPUTY)), db: Session = Depends(get_db)):
    risk = attendance_service.current_risk_list(db, ctx.school_id, follow_up.ids(ctx.token))
    data = summary.deputy_stats(
        entity_store.behaviors.list_all(db, ctx.school_id),
        today_str(),
        len(risk.active),
        entity_store.referrals.list_all(db, ctx.school_id),
    )
    return ok(data)


# ✅ [MONITOR] per-student absence profile with risk level
@router.get("/monitor")
def monitor(ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    profiles = absence_profiles(
        entity_store.students.list_all(db, ctx.school_id),
        attendance_service.load_records(db, ctx.school_id),
        ExcuseIndex(entity_store.requests.list_all(db, ctx.school_id)),
        high=settings.RISK_LEVEL_HIGH,
        medium=settings.RISK_LEVEL_MEDIUM,
    )
    return ok([p.model_dump() for p in profiles])


# ✅ [READ] at-risk list (consecutive unexcused absences) + this session's follow-up bucket
@router.get("/risk-list")
def risk_list(ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    risk = attendance_service.current_risk_list(db, ctx.school_id, follow_up.ids(ctx.token))
    return ok(risk.model_dump())


# ✅ [RESOLVE] persisted; hides the student for the resolve window
@router.post("/risk-list/resolve")
def resolve_alert(body: ResolveAlert, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    entity_store.risk_actions.create(db, ctx.school_id, {"student_id": body.student_id, "action_type": body.action})
    follow_up.remove(ctx.token, body.student_id)
    logger.info("risk alert resolved student=%s action=%s", body.student_id, body.action)
    return ok({"student_id": body.student_id}, "تم إغلاق التنبيه")


# ✅ [FOLLOW-UP] warning letter printed → follow-up bucket (session only, not persisted)
@router.post("/risk-list/follow-up")
def move_to_follow_up(body: FollowUpMove, ctx: SessionContext = Depends(require_staff)):
    follow_up.add(ctx.token, body.student_id)
    return ok({"student_id": body.student_id}, "تم نقل الطالب إلى قائمة المتابعة")


@router.delete("/risk-list/follow-up/{student_id}")
def remove_from_follow_up(student_id: str, ctx: SessionContext = Depends(require_staff)):
    follow_up.remove(ctx.token, student_id)
    return ok({"student_id": student_id})
