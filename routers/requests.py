import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_staff
from schemas.common import dump, ok
from schemas.enums import RequestStatus, Role
from schemas.excuse_requests import ExcuseRequest, ExcuseRequestCreate, RequestStatusUpdate
from services import entity_store, notifications
from services.file_store import FileStore, get_file_store, validate_upload

router = APIRouter(prefix="/requests", tags=["Excuse requests"])
logger = logging.getLogger(__name__)


def _visible_to(ctx: SessionContext, rows: list) -> list:
    """Teachers see their assigned classes; admins and 'requests' holders see everything."""
    if ctx.role == Role.ADMIN or ctx.has_permission("requests"):
        return rows
    assigned = set(ctx.assignments)
    return [r for r in rows if (r.grade, r.class_name) in assigned]


# ==========================================================
# [1] Parent side
# ==========================================================

# ✅ [UPLOAD] attachment → public URL (validated before anything is sent)
@router.post("/attachments")
async def upload_attachment(
    file: UploadFile = File(...),
    ctx: SessionContext = Depends(require_login),
    store: FileStore = Depends(get_file_store),
):
    data = await file.read()
    validate_upload(file.content_type, len(data))
    # minio client is blocking
    url = await run_in_threadpool(store.upload, ctx.school_id, file.filename or "attachment", file.content_type, data)
    return ok({"attachment_name": file.filename, "attachment_url": url}, "تم رفع المرفق")


# ✅ [CREATE] new excuse request
@router.post("")
def submit_request(body: ExcuseRequestCreate, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    ensure_child(ctx, body.student_id)
    row = entity_store.requests.create(db, ctx.school_id, {**body.model_dump(), "status": RequestStatus.PENDING.value})
    notifications.send_many(db, ctx.school_id, [notifications.request_received(body.student_id)])
    return ok(dump(ExcuseRequest, row), "تم إرسال العذر بنجاح")


# ✅ [READ] one student's requests, newest first
@router.get("/student/{student_id}")
def student_requests(student_id: str, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    ensure_child(ctx, student_id)
    rows = entity_store.requests.list_all(db, ctx.school_id, order_by="submission_date", descending=True, student_id=student_id)
    return ok(dump(ExcuseRequest, rows))


# ==========================================================
# [2] Staff side
# ==========================================================

# ✅ [READ] requests, newest first
@router.get("")
def list_requests(
    status: Optional[RequestStatus] = None,
    date: Optional[str] = None,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    rows = entity_store.requests.list_all(
        db, ctx.school_id, order_by="submission_date", descending=True,
        status=status.value if status else None, date=date,
    )
    return ok(dump(ExcuseRequest, _visible_to(ctx, rows)))


# ✅ [COUNT] pending requests in the caller's classes
@router.get("/pending-count")
def pending_count(ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    rows = entity_store.requests.list_all(db, ctx.school_id, status=RequestStatus.PENDING.value)
    return ok({"pending": len(_visible_to(ctx, rows))})


# ✅ [UPDATE] approve / reject
@router.put("/{request_id}/status")
def update_status(request_id: int, body: RequestStatusUpdate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.requests.update(db, ctx.school_id, request_id, {"status": body.status.value})
    notifications.send_many(db, ctx.school_id, [notifications.request_status_changed(row.student_id, row.status)])
    logger.info("request %s -> %s by %s", request_id, row.status, ctx.role.value)
    return ok(dump(ExcuseRequest, row), "تم تحديث حالة الطلب")
