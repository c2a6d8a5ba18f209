from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_permission
from schemas.common import dump, ok
from schemas.enums import PERM_COUNSELOR
from schemas.guidance_sessions import Guidance, GuidanceCreate, GuidanceUpdate
from services import entity_store

router = APIRouter(prefix="/guidance", tags=["Guidance sessions"])

counselor = require_permission(PERM_COUNSELOR)


# ✅ [READ]
@router.get("")
def list_sessions(student_id: Optional[str] = None, ctx: SessionContext = Depends(counselor), db: Session = Depends(get_db)):
    rows = entity_store.guidance.list_all(db, ctx.school_id, order_by="date", descending=True, student_id=student_id)
    return ok(dump(Guidance, rows))


# ✅ [CREATE]
@router.post("")
def create_session(body: GuidanceCreate, ctx: SessionContext = Depends(counselor), db: Session = Depends(get_db)):
    row = entity_store.guidance.create(db, ctx.school_id, body.model_dump())
    return ok(dump(Guidance, row), "تم حفظ الجلسة")


# ✅ [UPDATE]
@router.put("/{session_id}")
def update_session(session_id: int, body: GuidanceUpdate, ctx: SessionContext = Depends(counselor), db: Session = Depends(get_db)):
    row = entity_store.guidance.update(db, ctx.school_id, session_id, body.model_dump(exclude_none=True))
    return ok(dump(Guidance, row), "تم تحديث الجلسة")


# ✅ [DELETE]
@router.delete("/{session_id}")
def delete_session(session_id: int, ctx: SessionContext = Depends(counselor), db: Session = Depends(get_db)):
    entity_store.guidance.delete(db, ctx.school_id, session_id)
    return ok({"id": session_id}, "تم حذف الجلسة")
