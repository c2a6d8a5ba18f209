from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_parent, require_staff
from schemas.behaviors import Behavior, BehaviorCreate, BehaviorUpdate, ParentAcknowledge
from schemas.common import dump, ok
from services import entity_store, notifications
from utils.timeutil import utcnow

router = APIRouter(prefix="/behaviors", tags=["Behavior records"])


# ✅ [READ] newest first; parents only get their children
@router.get("")
def list_behaviors(student_id: Optional[str] = None, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    if student_id:
        ensure_child(ctx, student_id)
    elif ctx.children:
        student_id = list(ctx.children)
    rows = entity_store.behaviors.list_all(db, ctx.school_id, order_by="created_at", descending=True, student_id=student_id)
    return ok(dump(Behavior, rows))


# ✅ [CREATE] record a violation → parent alert
@router.post("")
def create_behavior(body: BehaviorCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    data = {**body.model_dump(), "staff_id": ctx.staff.id if ctx.staff is not None else None}
    row = entity_store.behaviors.create(db, ctx.school_id, data)
    notifications.send_many(db, ctx.school_id, [
        notifications.behavior_recorded(row.student_id, row.violation_name, row.action_taken),
    ])
    return ok(dump(Behavior, row), "تم تسجيل المخالفة")


# ✅ [UPDATE]
@router.put("/{behavior_id}")
def update_behavior(behavior_id: int, body: BehaviorUpdate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.behaviors.update(db, ctx.school_id, behavior_id, body.model_dump(exclude_none=True))
    return ok(dump(Behavior, row), "تم تحديث المخالفة")


# ✅ [ACK] parent has seen it (one way)
@router.post("/{behavior_id}/acknowledge")
def acknowledge_behavior(behavior_id: int, body: ParentAcknowledge, ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    row = entity_store.behaviors.get(db, ctx.school_id, behavior_id)
    ensure_child(ctx, row.student_id)
    row = entity_store.behaviors.update(db, ctx.school_id, behavior_id, {
        "parent_viewed": True,
        "parent_feedback": body.feedback,
        "parent_viewed_at": utcnow(),
    })
    return ok(dump(Behavior, row), "شكراً لاطلاعكم")


# ✅ [DELETE]
@router.delete("/{behavior_id}")
def delete_behavior(behavior_id: int, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    entity_store.behaviors.delete(db, ctx.school_id, behavior_id)
    return ok({"id": behavior_id}, "تم حذف المخالفة")
