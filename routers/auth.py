import hmac
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import (
    SessionContext, new_token, require_admin, require_login, require_school,
)
from models.schools import School as SchoolModel
from models.staff import StaffUser as StaffModel
from models.students import Student as StudentModel
from models.user_sessions import UserSession
from schemas.common import dump, ok
from schemas.enums import Role
from schemas.schools import (
    AdminLogin, ManagerUpdate, ParentLogin, School, SchoolLogin, SchoolRegister, StaffLogin,
)
from schemas.staff import Staff
from services.exceptions import Conflict, EntityNotFound, Unauthorized
from services.follow_up import follow_up

router = APIRouter(prefix="/auth", tags=["Auth / Schools"])
logger = logging.getLogger(__name__)


def _upgrade(db: Session, ctx: SessionContext, role: Role, staff_id=None, parent_civil_id=None) -> None:
    row = db.query(UserSession).filter(UserSession.token == ctx.token).first()
    row.role = role.value
    row.staff_id = staff_id
    row.parent_civil_id = parent_civil_id
    db.commit()


# ==========================================================
# [1] Schools (tenant)
# ==========================================================

# ✅ [CREATE] register a school
@router.post("/schools")
def register_school(body: SchoolRegister, db: Session = Depends(get_db)):
    school = SchoolModel(
        name=body.name,
        school_code=body.school_code.strip().upper(),
        admin_password=body.admin_password,
        logo_url=body.logo_url,
        plan="free",
    )
    db.add(school)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("كود المدرسة مستخدم مسبقاً، يرجى اختيار كود آخر.")
    db.refresh(school)
    logger.info("school registered id=%s code=%s", school.id, school.school_code)
    return ok(dump(School, school), "تم تسجيل المدرسة بنجاح")


# ✅ [READ] public school info by code (landing page)
@router.get("/schools/{code}")
def get_school_by_code(code: str, db: Session = Depends(get_db)):
    school = db.query(SchoolModel).filter(SchoolModel.school_code == code.strip().upper()).first()
    if school is None:
        raise EntityNotFound("لم يتم العثور على مدرسة بهذا الكود")
    return ok(dump(School, school))


# ✅ select a school → visitor session token
@router.post("/school")
def select_school(body: SchoolLogin, db: Session = Depends(get_db)):
    school = db.query(SchoolModel).filter(SchoolModel.school_code == body.school_code.strip().upper()).first()
    if school is None:
        raise EntityNotFound("لم يتم العثور على مدرسة بهذا الكود")
    session = UserSession(token=new_token(), school_id=school.id, role=Role.VISITOR.value)
    db.add(session)
    db.commit()
    return ok({"token": session.token, "school": dump(School, school)}, "تم اختيار المدرسة")


# ✅ [UPDATE] principal name shown on printed reports
@router.put("/school/manager")
def update_manager(body: ManagerUpdate, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    school = db.query(SchoolModel).filter(SchoolModel.id == ctx.school_id).first()
    school.manager_name = body.manager_name
    db.commit()
    db.refresh(school)
    return ok(dump(School, school), "تم تحديث اسم مدير المدرسة")


# ==========================================================
# [2] Login / logout
# ==========================================================

# ✅ admin dashboard password
@router.post("/admin")
def login_admin(body: AdminLogin, ctx: SessionContext = Depends(require_school), db: Session = Depends(get_db)):
    school = db.query(SchoolModel).filter(SchoolModel.id == ctx.school_id).first()
    # timing safe compare
    if not hmac.compare_digest(body.password.encode(), (school.admin_password or "").encode()):
        raise Unauthorized("كلمة المرور غير صحيحة")
    _upgrade(db, ctx, Role.ADMIN)
    return ok({"role": Role.ADMIN.value}, "تم تسجيل الدخول")


# ✅ staff passcode
@router.post("/staff")
def login_staff(body: StaffLogin, ctx: SessionContext = Depends(require_school), db: Session = Depends(get_db)):
    staff = (
        db.query(StaffModel)
        .filter(StaffModel.school_id == ctx.school_id, StaffModel.passcode == body.passcode)
        .first()
    )
    if staff is None:
        raise Unauthorized("رمز الدخول غير صحيح")
    _upgrade(db, ctx, Role.STAFF, staff_id=staff.id)
    return ok({"role": Role.STAFF.value, "staff": dump(Staff, staff)}, "تم تسجيل الدخول")


# ✅ parent civil id
@router.post("/parent")
def login_parent(body: ParentLogin, ctx: SessionContext = Depends(require_school), db: Session = Depends(get_db)):
    civil_id = body.parent_civil_id.strip()
    _upgrade(db, ctx, Role.PARENT, parent_civil_id=civil_id)
    own = (
        db.query(StudentModel)
        .filter(StudentModel.school_id == ctx.school_id, StudentModel.student_id == civil_id)
        .first()
    )
    return ok({"role": Role.PARENT.value, "is_student": own is not None}, "تم تسجيل الدخول")


# ✅ current session
@router.get("/me")
def me(ctx: SessionContext = Depends(require_login)):
    return ok({
        "school_id": ctx.school_id,
        "role": ctx.role.value,
        "staff": dump(Staff, ctx.staff) if ctx.staff is not None else None,
        "parent_civil_id": ctx.parent_civil_id,
        "children": sorted(ctx.children),
    })


# ✅ logout: the token and the session's follow-up bucket are dropped
@router.post("/logout")
def logout(ctx: SessionContext = Depends(require_school), db: Session = Depends(get_db)):
    db.query(UserSession).filter(UserSession.token == ctx.token).delete()
    db.commit()
    follow_up.clear(ctx.token)
    return ok(None, "تم تسجيل الخروج")
