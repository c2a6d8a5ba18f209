from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_parent
from routers.students import get_student_or_404
from schemas.common import dump, ok
from schemas.parents import ParentLinkCreate
from schemas.students import Student
from services import attendance_service, entity_store
from services.analytics import attendance as att
from services.analytics import summary

router = APIRouter(prefix="/parents", tags=["Parent portal"])


# ✅ [LINK] add a child to this guardian (no-op when already linked)
@router.post("/children")
def link_child(body: ParentLinkCreate, ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    student = get_student_or_404(db, ctx.school_id, body.student_id)
    if not entity_store.parent_links.list_all(db, ctx.school_id, parent_civil_id=ctx.parent_civil_id, student_id=student.student_id):
        entity_store.parent_links.create(db, ctx.school_id, {
            "parent_civil_id": ctx.parent_civil_id, "student_id": student.student_id,
        })
    return ok(dump(Student, student), "تم ربط الطالب بحسابك")


# ✅ [READ] linked children
@router.get("/children")
def my_children(ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    rows = entity_store.students.list_all(db, ctx.school_id, student_id=list(ctx.children))
    return ok(dump(Student, rows))


# ✅ [OVERVIEW] the 8 key metrics of one student + missing excuses
@router.get("/overview/{student_id}")
def student_overview(student_id: str, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    ensure_child(ctx, student_id)
    student = get_student_or_404(db, ctx.school_id, student_id)
    records = attendance_service.load_records(db, ctx.school_id)
    points = entity_store.points.list_all(db, ctx.school_id, student_id=student_id)
    overview = summary.student_overview(
        student,
        att.student_history(records, student_id),
        attendance_service.requests_for_student(db, ctx.school_id, student),
        exits=entity_store.exit_permissions.list_all(db, ctx.school_id, student_id=student_id),
        points_total=sum(p.points for p in points),
        behaviors=entity_store.behaviors.list_all(db, ctx.school_id, student_id=student_id),
        observations=entity_store.observations.list_all(db, ctx.school_id, student_id=student_id),
    )
    return ok(overview.model_dump())
