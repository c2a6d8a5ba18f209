import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_child, require_login, require_parent, require_staff
from models.appointments import AppointmentSlot
from schemas.appointments import Appointment, AppointmentCreate, GenerateSlots, Slot, SlotCreate, SlotUpdate
from schemas.common import DATE_PATTERN, dump, ok
from schemas.enums import AppointmentStatus
from services import entity_store, notifications
from services.analytics.summary import active_appointment
from services.exceptions import Conflict, ValidationFailed
from utils.timeutil import today_str, utcnow

router = APIRouter(prefix="/appointments", tags=["Appointments"])
logger = logging.getLogger(__name__)

DEFAULT_START = "08:00"
DEFAULT_END = "11:00"
DEFAULT_STEP_MINUTES = 30
DEFAULT_CAPACITY = 3


def default_slot_times(start: str = DEFAULT_START, end: str = DEFAULT_END,
                       step: int = DEFAULT_STEP_MINUTES) -> List[Tuple[str, str]]:
    """[(start, end), ...] in `step` minute blocks; the last block ends at or before `end`."""
    current = datetime.strptime(start, "%H:%M")
    stop = datetime.strptime(end, "%H:%M")
    times = []
    while current < stop:
        nxt = current + timedelta(minutes=step)
        times.append((current.strftime("%H:%M"), nxt.strftime("%H:%M")))
        current = nxt
    return times


# ==========================================================
# [1] Slots
# ==========================================================

# ✅ [READ] one day, or every upcoming day
@router.get("/slots")
def list_slots(
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
    ctx: SessionContext = Depends(require_login),
    db: Session = Depends(get_db),
):
    query = entity_store.slots.query(db, ctx.school_id)
    if date:
        query = query.filter(AppointmentSlot.date == date)
    else:
        query = query.filter(AppointmentSlot.date >= today_str())
    rows = query.order_by(AppointmentSlot.date, AppointmentSlot.start_time).all()
    return ok(dump(Slot, rows))


# ✅ [CREATE]
@router.post("/slots")
def create_slot(body: SlotCreate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    if body.end_time <= body.start_time:
        raise ValidationFailed("وقت النهاية يجب أن يكون بعد وقت البداية")
    row = entity_store.slots.create(db, ctx.school_id, {**body.model_dump(), "current_bookings": 0})
    return ok(dump(Slot, row), "تمت إضافة الموعد")


# ✅ [GENERATE] 08:00-11:00, 30 minute blocks, capacity 3
@router.post("/slots/generate")
def generate_slots(body: GenerateSlots, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    rows = [
        AppointmentSlot(
            school_id=ctx.school_id, date=body.date, start_time=s, end_time=e,
            max_capacity=DEFAULT_CAPACITY, current_bookings=0,
        )
        for s, e in default_slot_times()
    ]
    db.add_all(rows)
    db.commit()
    for r in rows:
        db.refresh(r)
    return ok(dump(Slot, rows), f"تم إنشاء {len(rows)} موعد")


# ✅ [UPDATE]
@router.put("/slots/{slot_id}")
def update_slot(slot_id: int, body: SlotUpdate, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.slots.update(db, ctx.school_id, slot_id, body.model_dump(exclude_none=True))
    return ok(dump(Slot, row), "تم تحديث الموعد")


# ==========================================================
# [2] Bookings
# ==========================================================

# ✅ [BOOK] one active booking per parent, slot capacity respected
@router.post("")
def book(body: AppointmentCreate, ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    ensure_child(ctx, body.student_id)
    mine = entity_store.appointments.list_all(db, ctx.school_id, parent_civil_id=ctx.parent_civil_id)
    if active_appointment(mine, today_str()) is not None:
        raise Conflict("لديك موعد قائم بالفعل، لا يمكن حجز موعد جديد قبل انتهائه")

    slot = entity_store.slots.get(db, ctx.school_id, body.slot_id)
    if slot.date < today_str():
        raise ValidationFailed("لا يمكن الحجز في موعد منتهٍ")
    if slot.current_bookings >= slot.max_capacity:
        raise Conflict("عفواً، اكتمل العدد لهذا الموعد")

    row = entity_store.appointments.create(db, ctx.school_id, {
        **body.model_dump(),
        "parent_civil_id": ctx.parent_civil_id,
        "status": AppointmentStatus.PENDING.value,
    })
    entity_store.slots.update(db, ctx.school_id, slot.id, {"current_bookings": slot.current_bookings + 1})
    db.refresh(row)
    logger.info("appointment booked id=%s slot=%s", row.id, slot.id)
    return ok(dump(Appointment, row), "تم حجز الموعد")


# ✅ [READ] parent's bookings, newest first
@router.get("/mine")
def my_appointments(ctx: SessionContext = Depends(require_parent), db: Session = Depends(get_db)):
    rows = entity_store.appointments.list_all(
        db, ctx.school_id, order_by="created_at", descending=True, parent_civil_id=ctx.parent_civil_id,
    )
    return ok(dump(Appointment, rows))


# ✅ [READ] visitors of one day (gate)
@router.get("")
def daily_appointments(
    date: Optional[str] = Query(default=None, pattern=DATE_PATTERN),
    ctx: SessionContext = Depends(require_staff),
    db: Session = Depends(get_db),
):
    rows = entity_store.appointments.list_all(db, ctx.school_id, order_by="created_at", descending=True)
    if date:
        rows = [r for r in rows if r.slot is not None and r.slot.date == date]
    return ok(dump(Appointment, rows))


# ✅ [CHECK-IN] visitor arrived → parent notified
@router.post("/{appointment_id}/check-in")
def check_in(appointment_id: int, ctx: SessionContext = Depends(require_staff), db: Session = Depends(get_db)):
    row = entity_store.appointments.update(db, ctx.school_id, appointment_id, {
        "status": AppointmentStatus.COMPLETED.value,
        "arrived_at": utcnow(),
    })
    notifications.send_many(db, ctx.school_id, [notifications.visitor_checked_in(row.student_id, row.parent_name)])
    return ok(dump(Appointment, row), "تم تسجيل دخول الزائر")
