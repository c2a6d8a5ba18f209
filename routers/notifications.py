from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_login
from schemas.common import dump, ok
from schemas.notifications import Notification
from services import entity_store
from services.exceptions import EntityNotFound
from services.realtime import BROADCAST, broker, sse_stream

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _inbox(ctx: SessionContext) -> list:
    return sorted(ctx.targets | {BROADCAST})


# ✅ [READ] caller's inbox (own targets + broadcasts), newest first
@router.get("")
def list_notifications(ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    rows = entity_store.notifications.list_all(
        db, ctx.school_id, order_by="created_at", descending=True, target_user_id=_inbox(ctx),
    )
    return ok(dump(Notification, rows), f"{sum(1 for r in rows if not r.is_read)} غير مقروء")


# ✅ [UPDATE] mark as read
@router.put("/{notification_id}/read")
def mark_read(notification_id: int, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    row = entity_store.notifications.get(db, ctx.school_id, notification_id)
    if row.target_user_id not in _inbox(ctx):
        raise EntityNotFound("الإشعار غير موجود")
    row = entity_store.notifications.update(db, ctx.school_id, notification_id, {"is_read": True})
    return ok(dump(Notification, row))


# ✅ [STREAM] Server-Sent Events of new notifications; unsubscribed when the client leaves
@router.get("/stream")
async def stream(ctx: SessionContext = Depends(require_login)):
    sub = broker.subscribe(ctx.school_id, ctx.targets)
    return StreamingResponse(
        sse_stream(sub),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
