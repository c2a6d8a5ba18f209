from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_parent, require_staff
from schemas.behaviors import ParentAcknowledge
from schemas.common import dump, ok
from schemas.observations import Observation, ObservationCreate, ObservationUpdate
from services import entity_store, notifications
from services.llm.base import TextGenerator
from services.llm.llm_gemini import get_text_generator
from services.report_service import analyze_sentiment
from utils.timeutil import utcnow

router = APIRouter(prefix="/observations", tags=["Student observations"])


# ✅ [READ] newest first; parents only get their children
@router.get("")
def list_observations(student_id: Optional[str] = None, ctx: SessionContext = Depends(require_login), db: Session = Depends(get_db)):
    if student_id:
        ensure_child(ctx, student_id)
    elif ctx.children:
        student_id = list(ctx.children)
    rows = entity_store.observations.list_all(db, ctx.school_id, order_by="created_at", descending=True, student_id=student_id)
    return ok(dump(Observation, rows))


# ✅ [CREATE] positive → success, behavioral → alert, else info
@router.post("")
def create_observation(body: ObservationCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    data = body.model_dump(mode="json")
    if ctx.staff is not None:
        data.update(staff_id=ctx.staff.id, staff_name=ctx.staff.name)
    row = entity_store.observations.create(db, ctx.school_id, data)
    notifications.send_many(db, ctx.school_id, [
        notifications.observation_recorded(row.student_id, row.type, row.content),
    ])
    return ok(dump(Observation, row), "تم حفظ الملاحظة")


# ✅ [UPDATE]
@router.put("/{observation_id}")
def update_observation(observation_id: int, body: ObservationUpdate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.observations.update(db, ctx.school_id, observation_id, body.model_dump(mode="json", exclude_none=True))
    return ok(dump(Observation, row), "تم تحديث الملاحظة")


# ✅ [ACK] parent has seen it (one way)
@router.post("/{observation_id}/acknowledge")
def acknowledge_observation(observation_id: int, body: ParentAcknowledge, ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    row = entity_store.observations.get(db, ctx.school_id, observation_id)
    ensure_child(ctx, row.student_id)
    row = entity_store.observations.update(db, ctx.school_id, observation_id, {
        "parent_viewed": True,
        "parent_feedback": body.feedback,
        "parent_viewed_at": utcnow(),
    })
    return ok(dump(Observation, row), "شكراً لاطلاعكم")


# ✅ [DELETE]
@router.delete("/{observation_id}")
def delete_observation(observation_id: int, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    entity_store.observations.delete(db, ctx.school_id, observation_id)
    return ok({"id": observation_id}, "تم حذف الملاحظة")


# ✅ [AI] tag the observation with its sentiment (neutral when the AI service is down)
@router.post("/{observation_id}/sentiment")
async def tag_sentiment(
    observation_id: int,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    row = entity_store.observations.get(db, ctx.school_id, observation_id)
    sentiment = await analyze_sentiment(generator, row.content)
    row = entity_store.observations.update(db, ctx.school_id, observation_id, {"sentiment": sentiment})
    return ok(dump(Observation, row))
