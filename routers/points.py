from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_staff
from schemas.common import dump, ok
from schemas.student_points import PointsCreate, StudentPoint
from services import entity_store, notifications
from services.analytics.ranking import top_n

router = APIRouter(prefix="/points", tags=["Excellence points"])


# ✅ [CREATE] award points → student/parent notified
@router.post("")
def add_points(body: PointsCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.points.create(db, ctx.school_id, body.model_dump())
    notifications.send_many(db, ctx.school_id, [notifications.points_added(row.student_id, row.points, row.reason)])
    return ok(dump(StudentPoint, row), "تمت إضافة النقاط")


# ✅ [LEADERBOARD] highest point totals
@router.get("/top")
def top_students(ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    rows = entity_store.points.list_all(db, ctx.school_id)
    ranked = top_n(rows, key=lambda p: p.student_id, increment=lambda p: p.points, k=settings.TOP_N)
    students = {
        s.student_id: s
        for s in entity_store.students.list_all(db, ctx.school_id, student_id=[r.key for r in ranked])
    }
    data = []
    for r in ranked:
        s = students.get(r.key)
        if s is None:
            continue
        data.append({"student_id": s.student_id, "name": s.name, "grade": s.grade, "class_name": s.class_name, "points": r.count})
    return ok(data)


# ✅ [READ] total + history, newest first
@router.get("/student/{student_id}")
def student_points(student_id: str, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    ensure_child(ctx, student_id)
    rows = entity_store.points.list_all(db, ctx.school_id, order_by="created_at", descending=True, student_id=student_id)
    return ok({"total": sum(r.points for r in rows), "history": dump(StudentPoint, rows)})
