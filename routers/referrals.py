import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_permission, require_staff
from schemas.common import dump, ok
from schemas.enums import PERM_DEPUTY, ReferralStatus
from schemas.referrals import Referral, ReferralCreate, ReferralText
from services import entity_store, notifications
from services.analytics.referrals import ACTION_PERMISSION, ReferralAction, apply_transition
from services.exceptions import Forbidden

router = APIRouter(prefix="/referrals", tags=["Referrals"])
logger = logging.getLogger(__name__)


# ✅ [CREATE] deputy / teacher → counselor
@router.post("")
def create_referral(body: ReferralCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.referrals.create(db, ctx.school_id, {**body.model_dump(), "status": ReferralStatus.PENDING.value})
    return ok(dump(Referral, row), "تم تحويل الطالب للموجه الطلابي")


# ✅ [READ] newest first
@router.get("")
def list_referrals(status: Optional[ReferralStatus] = None, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    rows = entity_store.referrals.list_all(
        db, ctx.school_id, order_by="created_at", descending=True, status=status.value if status else None,
    )
    return ok(dump(Referral, rows))


# ✅ [TRANSITION] accept | return_to_deputy | close
@router.post("/{referral_id}/{action}")
def transition(
    referral_id: int,
    action: ReferralAction,
    body: Optional[ReferralText] = None,
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    if not ctx.has_permission(ACTION_PERMISSION[action]):
        raise Forbidden("ليس لديك صلاحية لهذا الإجراء")
    row = entity_store.referrals.get(db, ctx.school_id, referral_id)
    patch = apply_transition(row.status, action, body.text if body else None)
    row = entity_store.referrals.update(db, ctx.school_id, referral_id, patch)
    logger.info("referral %s: %s -> %s", referral_id, action.value, row.status)
    return ok(dump(Referral, row), "تم تحديث حالة الإحالة")


# ✅ [NOTIFY] remind deputies/counselors about pending referrals
@router.post("/reminders")
def pending_reminders(ctx: SessionContext = Depends(require_permission(PERM_DEPUTY)), db: Session = Depends(get_db)):
    pending = entity_store.referrals.list_all(db, ctx.school_id, status=ReferralStatus.PENDING.value)
    if not pending:
        return ok({"sent": 0}, "لا توجد إحالات معلقة.")
    staff = entity_store.staff.list_all(db, ctx.school_id)
    sent = notifications.send_many(db, ctx.school_id, notifications.pending_referral_reminders(staff, len(pending)))
    if not sent:
        return {"success": False, "data": {"sent": 0}, "message": "لم يتم العثور على موجهين/وكلاء لإرسال التنبيه."}
    return ok({"sent": len(sent)}, f"تم تنبيه {len(sent)} من المختصين.")
