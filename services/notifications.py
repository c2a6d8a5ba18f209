"""
services/notifications.py

Notification rows for every event the portal reports, plus the realtime publish.
target_user_id is a student civil id (the parent inbox), a staff id, or 'ALL'.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from sqlalchemy.orm import Session

from models.notifications import Notification
from schemas.enums import AttendanceStatus, NotificationType, PERM_COUNSELOR, PERM_DEPUTY
from services.realtime import broker

logger = logging.getLogger(__name__)

Draft = Tuple[str, NotificationType, str, str]  # (target, type, title, message)


def to_event(n: Notification) -> dict:
    return {
        "id": n.id,
        "school_id": n.school_id,
        "target_user_id": n.target_user_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "is_read": n.is_read,
        "created_at": n.created_at.isoformat() if n.created_at else None,
    }


def send_many(db: Session, school_id: int, drafts: Iterable[Draft]) -> List[Notification]:
    """Insert drafts in one commit, then publish each insert."""
    rows = [
        Notification(school_id=school_id, target_user_id=str(target), type=ntype.value, title=title, message=message)
        for target, ntype, title, message in drafts
    ]
    if not rows:
        return rows
    db.add_all(rows)
    db.commit()
    for row in rows:
        db.refresh(row)
        broker.publish(to_event(row))
    logger.info("notifications sent school=%s count=%d", school_id, len(rows))
    return rows


def send(db: Session, school_id: int, target: str, ntype: NotificationType, title: str, message: str) -> Notification:
    return send_many(db, school_id, [(target, ntype, title, message)])[0]


def risk_staff(staff: Iterable) -> list:
    """Deputies and counselors."""
    return [s for s in staff if {PERM_DEPUTY, PERM_COUNSELOR} & set(s.permissions or [])]


# ==========================================================
# Drafts per event
# ==========================================================
def request_received(student_id: str) -> Draft:
    return (student_id, NotificationType.INFO, "تم استلام طلبك", "تم استلام عذر الغياب وهو قيد المراجعة.")


def request_status_changed(student_id: str, status: str) -> Draft:
    approved = status == "APPROVED"
    msg = "تم قبول العذر المقدم." if approved else "تم رفض العذر المقدم."
    return (student_id, NotificationType.SUCCESS if approved else NotificationType.ALERT, "تحديث حالة الطلب", msg)


def behavior_recorded(student_id: str, violation_name: str, action_taken: str) -> Draft:
    return (student_id, NotificationType.ALERT, "مخالفة سلوكية", f"تم تسجيل مخالفة: {violation_name} - {action_taken}")


def observation_recorded(student_id: str, obs_type: str, content: str) -> Draft:
    if obs_type == "positive":
        return (student_id, NotificationType.SUCCESS, "تعزيز إيجابي", f"رائع! {content}")
    if obs_type == "behavioral":
        return (student_id, NotificationType.ALERT, "ملاحظة سلوكية", content)
    return (student_id, NotificationType.INFO, "ملاحظة مدرسية", content)


def points_added(student_id: str, points: int, reason: str) -> Draft:
    return (student_id, NotificationType.INFO, "نقاط جديدة", f"تم إضافة {points} نقطة لرصيدك: {reason}")


def exit_completed(student_id: str, student_name: str) -> Draft:
    return (student_id, NotificationType.INFO, "خروج طالب", f"تم تسجيل خروج الطالب {student_name} من البوابة الآن.")


def visitor_checked_in(student_id: str, parent_name: str) -> Draft:
    return (student_id, NotificationType.SUCCESS, "تسجيل دخول", f"تم تسجيل دخول ولي الأمر {parent_name} للمدرسة.")


def daily_attendance(student_id: str, student_name: str, status: str, date: str):
    if status == AttendanceStatus.ABSENT:
        return (
            student_id, NotificationType.ALERT, "تنبيه غياب",
            f"نحيطكم علماً بأن الطالب {student_name} تغيب عن المدرسة بتاريخ {date}. يرجى تقديم عذر عبر البوابة.",
        )
    if status == AttendanceStatus.LATE:
        return (
            student_id, NotificationType.INFO, "تنبيه تأخر",
            f"تم رصد تأخر الطالب {student_name} عن الطابور الصباحي بتاريخ {date}.",
        )
    return None


def streak_alerts(student_id: str, student_name: str, grade: str, days: int, staff: Sequence) -> List[Draft]:
    drafts = [(
        student_id, NotificationType.ALERT, "إنذار انقطاع (الدرجة الأولى)",
        f"تنبيه هام: تغيب الطالب {student_name} لليوم {days} على التوالي بدون عذر. يرجى مراجعة المدرسة فوراً.",
    )]
    for s in risk_staff(staff):
        drafts.append((
            str(s.id), NotificationType.ALERT, "مؤشر خطر غياب",
            f"الطالب {student_name} ({grade}) وصل لـ {days} أيام غياب متصل.",
        ))
    return drafts


def teacher_absence_summary(staff: Iterable, day_records: Sequence, today: str) -> List[Draft]:
    """One summary per staff member with absences in their assigned classes today."""
    drafts = []
    for teacher in staff:
        absent = 0
        for a in teacher.assignments or []:
            for record in day_records:
                if record.grade == a.get("grade") and record.class_name == a.get("class_name"):
                    absent += sum(1 for e in record.records if e.status == AttendanceStatus.ABSENT)
        if absent > 0:
            drafts.append((
                str(teacher.id), NotificationType.INFO, "ملخص الغياب اليومي",
                f"تم رصد غياب {absent} طالب في الفصول المسندة إليك اليوم ({today}).",
            ))
    return drafts


def pending_referral_reminders(staff: Iterable, pending_count: int) -> List[Draft]:
    return [
        (
            str(s.id), NotificationType.ALERT, "تذكير: إحالات معلقة",
            f"يوجد {pending_count} إحالة جديدة بانتظار المعالجة. يرجى مراجعة صندوق الوارد.",
        )
        for s in risk_staff(staff)
    ]
