import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import SessionContext, require_admin, require_permission, require_staff
from routers.students import get_student_or_404
from schemas.common import ok
from schemas.enums import PERM_COUNSELOR
from schemas.reports import BehaviorSuggestionRequest, GuidancePlanRequest, SentimentRequest, StudentReportRequest
from services import attendance_service, entity_store, report_service
from services.analytics import attendance as att
from services.analytics import summary
from services.exceptions import AIServiceError
from services.llm.base import TextGenerator
from services.llm.llm_gemini import get_text_generator

router = APIRouter(prefix="/reports", tags=["AI reports"])
logger = logging.getLogger(__name__)


# ✅ [AI] executive report for the school administration
@router.post("/executive")
async def executive_report(
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    records = attendance_service.load_records(db, ctx.school_id)
    stats = summary.admin_stats(
        records,
        entity_store.behaviors.list_all(db, ctx.school_id),
        entity_store.observations.list_all(db, ctx.school_id),
        k=settings.TOP_N,
        trend_days=settings.TREND_DAYS,
    )
    risk = attendance_service.current_risk_list(db, ctx.school_id)
    inputs = summary.executive_inputs(stats, records, len(risk.active))
    try:
        text = await report_service.run_executive_report(generator, inputs)
    except AIServiceError as e:
        return report_service.fallback_payload(e)
    return ok({"text": text, "inputs": inputs})


# ✅ [AI] letter to a student's guardian
@router.post("/student")
async def student_report(
    body: StudentReportRequest,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    student = get_student_or_404(db, ctx.school_id, body.student_id)
    history = att.student_history(attendance_service.load_records(db, ctx.school_id), student.student_id)
    behaviors = entity_store.behaviors.list_all(db, ctx.school_id, student_id=student.student_id)
    points = sum(p.points for p in entity_store.points.list_all(db, ctx.school_id, student_id=student.student_id))
    counselor = report_service.counselor_name(entity_store.staff.list_all(db, ctx.school_id, order_by="id"))
    try:
        text = await report_service.run_student_report(generator, student.name, history, len(behaviors), points, counselor)
    except AIServiceError as e:
        return report_service.fallback_payload(e)
    return ok({"text": text})


# ✅ [AI] suggested disciplinary action for a violation
@router.post("/behavior-suggestion")
async def behavior_suggestion(
    body: BehaviorSuggestionRequest,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    history_count = len(entity_store.behaviors.list_all(db, ctx.school_id, student_id=body.student_id))
    try:
        text = await report_service.run_behavior_suggestion(generator, body.violation_name, history_count)
    except AIServiceError as e:
        return report_service.fallback_payload(e)
    return ok({"text": text, "history_count": history_count})


# ✅ [AI] individual guidance plan (counselor)
@router.post("/guidance-plan")
async def guidance_plan(
    body: GuidancePlanRequest,
    ctx: SessionContext = Depends(require_permission(PERM_COUNSELOR)),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    student = get_student_or_404(db, ctx.school_id, body.student_id)
    history = body.history
    if not history:
        behaviors = entity_store.behaviors.list_all(db, ctx.school_id, student_id=student.student_id)
        observations = entity_store.observations.list_all(db, ctx.school_id, student_id=student.student_id)
        notes = [f"مخالفة: {b.violation_name}" for b in behaviors] + [f"ملاحظة: {o.content}" for o in observations]
        history = "، ".join(notes) or "لا توجد ملاحظات مسجلة"
    try:
        text = await report_service.run_guidance_plan(generator, student.name, history)
    except AIServiceError as e:
        return report_service.fallback_payload(e)
    return ok({"text": text})


# ✅ [AI] sentiment of a free text (neutral when the AI service is down)
@router.post("/sentiment")
async def sentiment(
    body: SentimentRequest,
    ctx: SessionContext = Depends(require_staff),
    generator: TextGenerator = Depends(get_text_generator),
):
    return ok({"sentiment": await report_service.analyze_sentiment(generator, body.text)})
