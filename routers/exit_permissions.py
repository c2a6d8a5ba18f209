from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import SessionContext, require_parent, require_staff
from schemas.common import DATE_PATTERN, dump, ok
from schemas.enums import ExitStatus
from schemas.exit_permissions import ExitPermission, ExitPermissionCreate
from services import entity_store, notifications
from services.analytics.summary import active_exit, is_exit_active
from services.exceptions import Conflict
from utils.timeutil import utcnow

router = APIRouter(prefix="/exit-permissions", tags=["Exit permissions"])


def _with_active(row) -> dict:
    data = dump(ExitPermission, row)
    data["is_active"] = is_exit_active(row, utcnow(), settings.EXIT_PERMISSION_VALID_MINUTES)
    return data


# ✅ [CREATE] issue a permit (QR shown to the parent)
@router.post("")
def create_permission(body: ExitPermissionCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    data = body.model_dump()
    if ctx.staff is not None:
        data.update(created_by=str(ctx.staff.id), created_by_name=ctx.staff.name)
    else:
        data.update(created_by="admin", created_by_name="الإدارة")
    row = entity_store.exit_permissions.create(db, ctx.school_id, {**data, "status": ExitStatus.PENDING_PICKUP.value})
    return ok(_with_active(row), "تم إصدار إذن الخروج")


# ✅ [READ] permits, optionally for one day, newest first
@router.get("")
def list_permissions(
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    rows = entity_store.exit_permissions.list_all(db, ctx.school_id, order_by="created_at", descending=True)
    if date:
        rows = [r for r in rows if r.created_at.date().isoformat() == date]
    return ok([_with_active(r) for r in rows])


# ✅ [READ] parent: children's permits + the one currently valid
@router.get("/mine")
def my_permissions(ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    rows = entity_store.exit_permissions.list_all(
        db, ctx.school_id, order_by="created_at", descending=True, student_id=list(ctx.children),
    )
    active = active_exit(rows, utcnow(), settings.EXIT_PERMISSION_VALID_MINUTES)
    return ok({
        "active": _with_active(active) if active is not None else None,
        "history": [_with_active(r) for r in rows],
    })


# ✅ [READ] gate scanner lookup
@router.get("/{permission_id}")
def read_permission(permission_id: int, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    return ok(_with_active(entity_store.exit_permissions.get(db, ctx.school_id, permission_id)))


# ✅ [COMPLETE] student left through the gate → parent notified
@router.post("/{permission_id}/complete")
def complete_permission(permission_id: int, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.exit_permissions.get(db, ctx.school_id, permission_id)
    if row.status != ExitStatus.PENDING_PICKUP:
        raise Conflict("تم استخدام هذا الإذن مسبقاً")
    row = entity_store.exit_permissions.update(db, ctx.school_id, permission_id, {
        "status": ExitStatus.COMPLETED.value,
        "completed_at": utcnow(),
    })
    notifications.send_many(db, ctx.school_id, [notifications.exit_completed(row.student_id, row.student_name)])
    return ok(_with_active(row), "تم تسجيل خروج الطالب")
