from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_admin, require_staff
from models.students import Student as StudentModel
from schemas.common import dump, ok
from schemas.students import Student, StudentBatch, StudentCreate, StudentUpdate
from services import entity_store
from services.exceptions import Conflict, EntityNotFound

router = APIRouter(prefix="/students", tags=["Students"])


def phone_variations(phone: str) -> list:
    """05xxxxxxxx ↔ 9665xxxxxxxx, spaces and dashes ignored."""
    clean = phone.replace(" ", "").replace("-", "")
    variations = [clean]
    if clean.startswith("966"):
        variations.append("0" + clean[3:])
    elif clean.startswith("05"):
        variations.append("966" + clean[1:])
    return variations


def get_student_or_404(db: Session, school_id: int, student_id: str) -> StudentModel:
    student = (
        db.query(StudentModel)
        .filter(StudentModel.school_id == school_id, StudentModel.student_id == student_id)
        .first()
    )
    if student is None:
        raise EntityNotFound("لم يتم العثور على الطالب")
    return student


# ==========================================================
# [1] Lists / search
# ==========================================================

# ✅ [READ] students (optionally one grade/class, or a name search)
@router.get("")
def list_students(
    grade: Optional[str] = None,
    class_name: Optional[str] = None,
    q: Optional[str] = None,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    query = entity_store.students.query(db, ctx.school_id)
    if grade:
        query = query.filter(StudentModel.grade == grade)
    if class_name:
        query = query.filter(StudentModel.class_name == class_name)
    if q:
        query = query.filter(StudentModel.name.contains(q))
    rows = query.order_by(StudentModel.grade, StudentModel.class_name, StudentModel.name).all()
    return ok(dump(Student, rows), f"{len(rows)} طالب")


# ✅ [READ] class names available in a grade
@router.get("/classes")
def classes_for_grade(grade: str, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    rows = (
        db.query(StudentModel.class_name)
        .filter(StudentModel.school_id == ctx.school_id, StudentModel.grade == grade)
        .distinct()
        .all()
    )
    return ok(sorted(r[0] for r in rows))


# ✅ [SEARCH] by guardian phone
@router.get("/by-phone")
def students_by_phone(phone: str, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    rows = entity_store.students.list_all(db, ctx.school_id, phone=phone_variations(phone))
    return ok(dump(Student, rows))


# ==========================================================
# [2] Single student
# ==========================================================

# ✅ [READ] by civil id
@router.get("/{student_id}")
def read_student(student_id: str, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    return ok(dump(Student, get_student_or_404(db, ctx.school_id, student_id)))


# ✅ [CREATE]
@router.post("")
def create_student(body: StudentCreate, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    exists = (
        db.query(StudentModel.id)
        .filter(StudentModel.school_id == ctx.school_id, StudentModel.student_id == body.student_id)
        .first()
    )
    if exists:
        raise Conflict("يوجد طالب مسجل بنفس رقم الهوية")
    row = entity_store.students.create(db, ctx.school_id, body.model_dump())
    return ok(dump(Student, row), "تمت إضافة الطالب")


# ✅ [UPDATE] by civil id
@router.put("/{student_id}")
def update_student(student_id: str, body: StudentUpdate, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    student = get_student_or_404(db, ctx.school_id, student_id)
    row = entity_store.students.update(db, ctx.school_id, student.id, body.model_dump(exclude_none=True))
    return ok(dump(Student, row), "تم تحديث بيانات الطالب")


# ✅ [IMPORT] upsert on (school, student_id)
@router.post("/batch")
def import_students(body: StudentBatch, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    existing = {s.student_id: s for s in entity_store.students.list_all(db, ctx.school_id)}
    added = updated = 0
    for item in body.students:
        row = existing.get(item.student_id)
        if row is None:
            row = StudentModel(school_id=ctx.school_id, **item.model_dump())
            db.add(row)
            existing[item.student_id] = row
            added += 1
        else:
            for key, value in item.model_dump().items():
                setattr(row, key, value)
            updated += 1
    db.commit()
    return ok({"added": added, "updated": updated}, "تم استيراد الطلاب")
