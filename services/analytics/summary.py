"""
services/analytics/summary.py

Screen-level view models assembled from the aggregators.
No new counting rules live here; "latest" items are picked after an explicit
sort because fetch order is not guaranteed.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from schemas.enums import AttendanceStatus, ExitStatus, AppointmentStatus, ObservationType, RequestStatus
from services.analytics import attendance as att
from services.analytics.excuses import ExcuseIndex, has_live_excuse, is_unexcused
from services.analytics.ranking import RankEntry, describe_student, top_n


# ==========================================================
# Parent / student overview (8 key metrics)
# ==========================================================
class LatestItem(BaseModel):
    id: Optional[int] = None
    date: str
    title: str
    detail: str = ""


class StudentOverview(BaseModel):
    student_id: str
    student_name: str
    present_days: int = 0
    unexcused_absences: int = 0
    excused_absences: int = 0
    late_count: int = 0
    exit_count: int = 0
    points_total: int = 0
    latest_violation: Optional[LatestItem] = None
    latest_observation: Optional[LatestItem] = None
    missing_excuses: List[str] = Field(default_factory=list)


def _newest(items: Iterable, *fields: str):
    ordered = sorted(
        items,
        key=lambda i: tuple(str(getattr(i, f, "") or "") for f in fields),
        reverse=True,
    )
    return ordered[0] if ordered else None


def student_overview(
    student,
    history: Sequence[att.HistoryEntry],
    requests: Iterable,
    exits: Sequence = (),
    points_total: int = 0,
    behaviors: Iterable = (),
    observations: Iterable = (),
) -> StudentOverview:
    excuses = ExcuseIndex(requests)
    overview = StudentOverview(
        student_id=student.student_id,
        student_name=student.name,
        exit_count=len(exits),
        points_total=points_total,
    )
    for entry in history:
        if entry.status == AttendanceStatus.PRESENT:
            overview.present_days += 1
        elif entry.status == AttendanceStatus.LATE:
            overview.late_count += 1
        elif entry.status == AttendanceStatus.ABSENT:
            status = excuses.status(student.student_id, student.name, entry.date)
            if is_unexcused(status):
                overview.unexcused_absences += 1
            else:
                overview.excused_absences += 1
            if not has_live_excuse(status):
                overview.missing_excuses.append(entry.date)

    violation = _newest(behaviors, "date", "created_at")
    if violation is not None:
        overview.latest_violation = LatestItem(
            id=violation.id, date=violation.date, title=violation.violation_name, detail=violation.action_taken
        )
    observation = _newest(observations, "date", "created_at")
    if observation is not None:
        overview.latest_observation = LatestItem(
            id=observation.id, date=observation.date, title=observation.type, detail=observation.content
        )
    return overview


# ==========================================================
# Admin statistics dashboard
# ==========================================================
class AdminStats(BaseModel):
    rates: Dict[str, int]
    totals: att.AttendanceTotals
    top_attendance_classes: List[att.ClassRate]
    top_absence_classes: List[att.ClassRate]
    daily_trend: List[att.TrendPoint]
    total_violations: int
    top_violations: List[RankEntry]
    observation_sentiment: Dict[str, int]
    top_absent_students: List[RankEntry]
    top_late_students: List[RankEntry]
    top_behavior_students: List[RankEntry]
    top_observation_students: List[RankEntry]


def _entry_rows(records: Iterable[att.DailyAttendance], status: AttendanceStatus):
    for record, entry in att.flatten(records):
        if entry.status == status:
            yield record, entry


def _student_from_entry(pair) -> dict:
    record, entry = pair
    return {"name": entry.student_name, "grade": record.grade, "class_name": record.class_name}


def top_students_by_status(records: Sequence[att.DailyAttendance], status: AttendanceStatus, k: int = 5) -> List[RankEntry]:
    return top_n(
        _entry_rows(records, status),
        key=lambda pair: pair[1].student_id,
        describe=_student_from_entry,
        k=k,
    )


def admin_stats(
    records: Sequence[att.FullDailyAttendance],
    behaviors: Sequence,
    observations: Sequence,
    k: int = 5,
    trend_days: int = 7,
) -> AdminStats:
    aggregate = att.aggregate_full(records, last_days=trend_days)
    rankings = att.class_rankings(aggregate.by_class, k)

    sentiment = {"positive": 0, "negative": 0}
    for o in observations:
        if o.type == ObservationType.POSITIVE:
            sentiment["positive"] += 1
        else:
            sentiment["negative"] += 1

    return AdminStats(
        rates=aggregate.rates,
        totals=aggregate.totals,
        top_attendance_classes=rankings["top_attendance"],
        top_absence_classes=rankings["top_absence"],
        daily_trend=aggregate.trend,
        total_violations=len(behaviors),
        top_violations=top_n(behaviors, key=lambda b: b.violation_name, k=k),
        observation_sentiment=sentiment,
        top_absent_students=top_students_by_status(records, AttendanceStatus.ABSENT, k),
        top_late_students=top_students_by_status(records, AttendanceStatus.LATE, k),
        top_behavior_students=top_n(behaviors, key=lambda b: b.student_id, describe=describe_student, k=k),
        top_observation_students=top_n(observations, key=lambda o: o.student_id, describe=describe_student, k=k),
    )


# ==========================================================
# Teacher reports (assigned classes only)
# ==========================================================
class TeacherReportRow(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    status: AttendanceStatus
    excuse_status: Optional[RequestStatus] = None


class ClassDaySummary(BaseModel):
    grade: str
    class_name: str
    total: int
    present: int
    absent: int
    late: int
    rate: int
    absent_rate: int
    late_rate: int


class TeacherDailyReport(BaseModel):
    date: str
    total_present: int
    total_absent: int
    total_late: int
    details: List[TeacherReportRow]
    classes: List[ClassDaySummary]


def teacher_daily_report(
    day: str,
    records: Sequence[att.SparseDailyAttendance],
    roster: Sequence,
    requests: Iterable,
    assignments: Sequence[Tuple[str, str]],
) -> TeacherDailyReport:
    """Roster-based daily report: present is derived by subtraction."""
    day_records = [r for r in records if r.date == day]
    aggregate = att.aggregate_roster(day_records, roster)
    excuses = ExcuseIndex([r for r in requests if r.date == day])
    allowed = set(assignments)

    details = [
        TeacherReportRow(
            student_id=entry.student_id,
            student_name=entry.student_name,
            grade=record.grade,
            class_name=record.class_name,
            status=entry.status,
            excuse_status=excuses.status(entry.student_id, entry.student_name, day),
        )
        for record, entry in att.flatten(day_records)
        if (record.grade, record.class_name) in allowed
    ]

    classes = []
    for grade, class_name in assignments:
        bucket = aggregate.by_class.get(att.class_key(grade, class_name), att.ClassBreakdown(grade=grade, class_name=class_name))
        classes.append(
            ClassDaySummary(
                grade=grade,
                class_name=class_name,
                total=bucket.total,
                present=bucket.present,
                absent=bucket.absent,
                late=bucket.late,
                # late students attended, so they count toward the attendance rate
                rate=att.rate(bucket.total - bucket.absent, bucket.total),
                absent_rate=att.rate(bucket.absent, bucket.total),
                late_rate=att.rate(bucket.late, bucket.total),
            )
        )

    return TeacherDailyReport(
        date=day,
        total_present=aggregate.totals.present,
        total_absent=aggregate.totals.absent,
        total_late=aggregate.totals.late,
        details=details,
        classes=classes,
    )


class TeacherStats(BaseModel):
    totals: att.AttendanceTotals
    rates: Dict[str, int]
    classes: List[att.ClassBreakdown]
    top_absent_students: List[RankEntry]
    top_late_students: List[RankEntry]
    absences_by_weekday: Dict[str, int]


def teacher_stats(
    records: Sequence[att.FullDailyAttendance],
    assignments: Sequence[Tuple[str, str]],
    k: int = 5,
) -> TeacherStats:
    allowed = set(assignments)
    mine = [r for r in records if (r.grade, r.class_name) in allowed]
    aggregate = att.aggregate_full(mine, classes=assignments)
    return TeacherStats(
        totals=aggregate.totals,
        rates=aggregate.rates,
        classes=list(aggregate.by_class.values()),
        top_absent_students=top_students_by_status(mine, AttendanceStatus.ABSENT, k),
        top_late_students=top_students_by_status(mine, AttendanceStatus.LATE, k),
        absences_by_weekday=att.absences_by_weekday(mine),
    )


# ==========================================================
# Deputy / executive figures
# ==========================================================
def deputy_stats(behaviors: Sequence, today: str, risk_count: int, referrals: Sequence) -> dict:
    resolved = sum(1 for r in referrals if r.status == "resolved")
    return {
        "total_violations": len(behaviors),
        "today_violations": sum(1 for b in behaviors if b.date == today),
        "at_risk_count": risk_count,
        "referrals_total": len(referrals),
        "referrals_open": len(referrals) - resolved,
        "referrals_resolved": resolved,
    }


def most_absent_grade(records: Iterable[att.DailyAttendance]) -> Optional[str]:
    counts: Dict[str, int] = {}
    for record, entry in att.flatten(records):
        if entry.status == AttendanceStatus.ABSENT:
            counts[record.grade] = counts.get(record.grade, 0) + 1
    if not counts:
        return None
    return max(counts.items(), key=lambda kv: kv[1])[0]


def executive_inputs(stats: AdminStats, records: Sequence[att.DailyAttendance], risk_count: int) -> dict:
    return {
        "attendance_rate": stats.rates["present"],
        "absence_rate": stats.rates["absent"],
        "lateness_rate": stats.rates["late"],
        "total_violations": stats.total_violations,
        "risk_count": risk_count,
        "most_absent_grade": most_absent_grade(records) or "-",
    }


# ==========================================================
# Exit permissions / appointments
# ==========================================================
def is_exit_active(permission, now: datetime, valid_minutes: int = 60) -> bool:
    """A permit shows its QR only while pending pickup and younger than the validity window."""
    if permission.status != ExitStatus.PENDING_PICKUP:
        return False
    return now - permission.created_at < timedelta(minutes=valid_minutes)


def active_exit(permissions: Iterable, now: datetime, valid_minutes: int = 60):
    for p in permissions:
        if is_exit_active(p, now, valid_minutes):
            return p
    return None


def active_appointment(appointments: Iterable, today: str):
    """First pending appointment whose slot day has not passed yet."""
    for a in appointments:
        if a.status != AppointmentStatus.PENDING:
            continue
        slot_date = a.slot.date if getattr(a, "slot", None) is not None else None
        if slot_date is not None and slot_date >= today:
            return a
    return None
