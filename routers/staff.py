from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_admin
from schemas.common import dump, ok
from schemas.staff import Staff, StaffCreate, StaffUpdate
from services import entity_store
from services.exceptions import Conflict

router = APIRouter(prefix="/staff", tags=["Staff users"])


def _check_passcode_free(db: Session, school_id: int, passcode: str, own_id: int = None) -> None:
    for s in entity_store.staff.list_all(db, school_id, passcode=passcode):
        if s.id != own_id:
            raise Conflict("رمز الدخول مستخدم لموظف آخر")


# ✅ [READ]
@router.get("")
def list_staff(ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    return ok(dump(Staff, entity_store.staff.list_all(db, ctx.school_id, order_by="name")))


# ✅ [CREATE]
@router.post("")
def create_staff(body: StaffCreate, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    _check_passcode_free(db, ctx.school_id, body.passcode)
    row = entity_store.staff.create(db, ctx.school_id, body.model_dump())
    return ok(dump(Staff, row), "تمت إضافة المستخدم")


# ✅ [UPDATE]
@router.put("/{staff_id}")
def update_staff(staff_id: int, body: StaffUpdate, ctx: SessionContext = Depends(require_admin), db: Session = Depends(get_db)):
    patch = body.model_dump(exclude_none=True)
    if "passcode" in patch:
        _check_passcode_free(db, ctx.school_id, patch["passcode"], own_id=staff_id)
    row = entity_store.staff.update(db, ctx.school_id, staff_id, patch)
    return ok(dump(Staff, row), "تم تحديث المستخدم")
