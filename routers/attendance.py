from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import (
    SessionContext, ensure_child, require_admin, require_login, require_staff,
)
from schemas.attendance import AttendanceRecord, AttendanceSave
from schemas.common import DateQuery, dump, ok
from services import attendance_service, entity_store, notifications
from services.analytics import attendance as att
from services.analytics.excuses import ExcuseIndex
from utils.timeutil import today_str

router = APIRouter(prefix="/attendance", tags=["Attendance"])


# ==========================================================
# [1] Taking the roll
# ==========================================================

# ✅ [SAVE] one class roll for one day (insert or replace)
@router.post("")
def save_attendance(body: AttendanceSave, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    entries = [e.model_dump(mode="json") for e in body.records]
    row = attendance_service.save_class_roll(
        db, ctx.school_id, ctx.staff.id if ctx.staff is not None else None,
        body.date, body.grade, body.class_name, entries,
    )
    return ok(dump(AttendanceRecord, row), "تم حفظ التحضير")


# ✅ [READ] the saved roll of a class for a day (null when not taken yet)
@router.get("/class")
def class_record(date: DateQuery, grade: str, class_name: str,
                 ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = attendance_service.find_class_record(db, ctx.school_id, date, grade, class_name)
    return ok(dump(AttendanceRecord, row) if row is not None else None)


# ==========================================================
# [2] Reports
# ==========================================================

# ✅ [REPORT] school-wide daily report
@router.get("/report")
def daily_report(date: DateQuery, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    records = attendance_service.load_records(db, ctx.school_id, date=date)
    excuses = ExcuseIndex(entity_store.requests.list_all(db, ctx.school_id, date=date))
    return ok(att.daily_report(records, date, excuses).model_dump())


# ✅ [HISTORY] one student's entries, newest first
@router.get("/history/{student_id}")
def student_history(student_id: str, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    ensure_child(ctx, student_id)
    records = attendance_service.load_records(db, ctx.school_id)
    return ok([h.model_dump() for h in att.student_history(records, student_id)])


# ✅ [NOTIFY] today's absence summary to every teacher with absences in their classes
@router.post("/absence-summary")
def absence_summary(ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    today = today_str()
    records = attendance_service.load_records(db, ctx.school_id, date=today)
    if not records:
        return {"success": False, "data": None, "message": "لا يوجد بيانات حضور لهذا اليوم بعد."}
    staff = entity_store.staff.list_all(db, ctx.school_id)
    sent = notifications.send_many(db, ctx.school_id, notifications.teacher_absence_summary(staff, records, today))
    if not sent:
        return ok({"sent": 0}, "لم يتم العثور على حالات غياب تستدعي التنبيه.")
    return ok({"sent": len(sent)}, f"تم إرسال {len(sent)} إشعار للمعلمين.")
