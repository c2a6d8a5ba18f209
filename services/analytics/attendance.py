"""
services/analytics/attendance.py

Attendance aggregation over class-day attendance records.

Two record shapes are kept apart on purpose:
  - FullDailyAttendance   : every student on the roll has an entry (PRESENT included).
                            Present is counted from the explicit PRESENT entries.
  - SparseDailyAttendance : only ABSENT / LATE entries are kept. A student with no
                            entry is present, so present = max(0, roster - absent - late).

All functions are pure: inputs are read, never mutated, and empty input
yields zero counts.
"""

from __future__ import annotations

from datetime import date as date_cls
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from schemas.enums import AttendanceStatus, RequestStatus
from services.analytics.excuses import ExcuseIndex


ARABIC_WEEKDAYS = ["الاثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت", "الأحد"]


def class_key(grade: str, class_name: str) -> str:
    return f"{grade} - {class_name}"


def rate(part: int, whole: int) -> int:
    """Whole-number percentage, 0 when there is nothing to divide by."""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


# ==========================================================
# Record shapes
# ==========================================================
class StudentEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    student_id: str
    student_name: str = ""
    status: AttendanceStatus


class DailyAttendance(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    date: str
    grade: str
    class_name: str
    records: Tuple[StudentEntry, ...] = ()

    @property
    def class_key(self) -> str:
        return class_key(self.grade, self.class_name)

    @classmethod
    def from_row(cls, row):
        return cls.model_validate(row, from_attributes=True)


class FullDailyAttendance(DailyAttendance):
    """Class-day roll with an entry for every student."""


class SparseDailyAttendance(DailyAttendance):
    """Class-day roll holding only the ABSENT / LATE entries."""

    @classmethod
    def from_row(cls, row):
        full = DailyAttendance.model_validate(row, from_attributes=True)
        kept = tuple(e for e in full.records if e.status != AttendanceStatus.PRESENT)
        return cls(date=full.date, grade=full.grade, class_name=full.class_name, records=kept)


# ==========================================================
# Outputs
# ==========================================================
class AttendanceTotals(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0


class ClassBreakdown(BaseModel):
    grade: str = ""
    class_name: str = ""
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0


class TrendPoint(BaseModel):
    date: str
    absent: int = 0
    late: int = 0


class AttendanceAggregate(BaseModel):
    totals: AttendanceTotals = Field(default_factory=AttendanceTotals)
    by_class: Dict[str, ClassBreakdown] = Field(default_factory=dict)
    trend: List[TrendPoint] = Field(default_factory=list)

    @property
    def rates(self) -> Dict[str, int]:
        t = self.totals
        return {
            "present": rate(t.present, t.total),
            "absent": rate(t.absent, t.total),
            "late": rate(t.late, t.total),
        }


class DailyReportRow(BaseModel):
    student_id: str
    student_name: str
    grade: str
    class_name: str
    status: AttendanceStatus
    excuse_status: Optional[RequestStatus] = None


class DailyReport(BaseModel):
    date: str
    total_present: int = 0
    total_absent: int = 0
    total_late: int = 0
    details: List[DailyReportRow] = Field(default_factory=list)


class ClassRate(BaseModel):
    name: str
    attendance_rate: int
    absence_rate: int


class HistoryEntry(BaseModel):
    date: str
    status: AttendanceStatus


def _bump(bucket, status: AttendanceStatus) -> None:
    if status == AttendanceStatus.PRESENT:
        bucket.present += 1
    elif status == AttendanceStatus.ABSENT:
        bucket.absent += 1
    elif status == AttendanceStatus.LATE:
        bucket.late += 1


def _trend(per_day: Dict[str, TrendPoint], last_days: Optional[int]) -> List[TrendPoint]:
    ordered = [per_day[d] for d in sorted(per_day)]
    if last_days is not None:
        ordered = ordered[-last_days:] if last_days > 0 else []
    return ordered


# ==========================================================
# Aggregators
# ==========================================================
def aggregate_full(
    records: Iterable[FullDailyAttendance],
    classes: Optional[Sequence[Tuple[str, str]]] = None,
    last_days: Optional[int] = None,
) -> AttendanceAggregate:
    """
    Admin-wide (or assigned-classes) statistics counting every nested entry.
    - classes: restrict to these (grade, class_name) pairs; they are listed even without records.
    - last_days: keep only the most recent N days of the trend series.
    """
    allowed = set(classes) if classes is not None else None
    totals = AttendanceTotals()
    by_class: Dict[str, ClassBreakdown] = {}
    per_day: Dict[str, TrendPoint] = {}

    for grade, class_name in classes or ():
        by_class.setdefault(class_key(grade, class_name), ClassBreakdown(grade=grade, class_name=class_name))

    for record in records:
        if allowed is not None and (record.grade, record.class_name) not in allowed:
            continue
        bucket = by_class.setdefault(
            record.class_key, ClassBreakdown(grade=record.grade, class_name=record.class_name)
        )
        day = per_day.setdefault(record.date, TrendPoint(date=record.date))
        for entry in record.records:
            totals.total += 1
            bucket.total += 1
            _bump(totals, entry.status)
            _bump(bucket, entry.status)
            if entry.status == AttendanceStatus.ABSENT:
                day.absent += 1
            elif entry.status == AttendanceStatus.LATE:
                day.late += 1

    return AttendanceAggregate(totals=totals, by_class=by_class, trend=_trend(per_day, last_days))


def aggregate_roster(
    records: Iterable[SparseDailyAttendance],
    roster: Sequence,
) -> AttendanceAggregate:
    """
    Teacher view of one school day over the assigned roster.
    `roster` holds the assigned students (anything with .grade and .class_name).
    Present is derived by subtraction, never counted from entries.
    """
    class_sizes: Dict[Tuple[str, str], int] = {}
    for student in roster:
        pair = (student.grade, student.class_name)
        class_sizes[pair] = class_sizes.get(pair, 0) + 1

    by_class: Dict[str, ClassBreakdown] = {
        class_key(g, c): ClassBreakdown(grade=g, class_name=c, total=size)
        for (g, c), size in class_sizes.items()
    }
    totals = AttendanceTotals(total=len(roster))
    per_day: Dict[str, TrendPoint] = {}

    for record in records:
        if (record.grade, record.class_name) not in class_sizes:
            continue
        bucket = by_class[record.class_key]
        day = per_day.setdefault(record.date, TrendPoint(date=record.date))
        for entry in record.records:
            if entry.status == AttendanceStatus.ABSENT:
                totals.absent += 1
                bucket.absent += 1
                day.absent += 1
            elif entry.status == AttendanceStatus.LATE:
                totals.late += 1
                bucket.late += 1
                day.late += 1

    totals.present = present_by_subtraction(totals.total, totals.absent, totals.late)
    for bucket in by_class.values():
        bucket.present = present_by_subtraction(bucket.total, bucket.absent, bucket.late)

    return AttendanceAggregate(totals=totals, by_class=by_class, trend=_trend(per_day, None))


def present_by_subtraction(roster_size: int, absent: int, late: int) -> int:
    return max(0, roster_size - absent - late)


def daily_report(
    records: Iterable[FullDailyAttendance],
    day: str,
    excuses: Optional[ExcuseIndex] = None,
) -> DailyReport:
    """
    School-wide report for one date: every non-ABSENT, non-LATE entry counts as present.
    Each detail row carries the reconciled excuse status (None without a matching request).
    """
    if excuses is None:
        excuses = ExcuseIndex(())
    report = DailyReport(date=day)
    for record in records:
        if record.date != day:
            continue
        for entry in record.records:
            if entry.status == AttendanceStatus.ABSENT:
                report.total_absent += 1
            elif entry.status == AttendanceStatus.LATE:
                report.total_late += 1
            else:
                report.total_present += 1
            if entry.status != AttendanceStatus.PRESENT:
                report.details.append(
                    DailyReportRow(
                        student_id=entry.student_id,
                        student_name=entry.student_name,
                        grade=record.grade,
                        class_name=record.class_name,
                        status=entry.status,
                        excuse_status=excuses.status(entry.student_id, entry.student_name, day),
                    )
                )
    return report


def class_rates(by_class: Dict[str, ClassBreakdown]) -> List[ClassRate]:
    return [
        ClassRate(
            name=key,
            attendance_rate=rate(b.present, b.total),
            absence_rate=rate(b.absent, b.total),
        )
        for key, b in by_class.items()
    ]


def class_rankings(by_class: Dict[str, ClassBreakdown], k: int = 5) -> Dict[str, List[ClassRate]]:
    rates = class_rates(by_class)
    return {
        "top_attendance": sorted(rates, key=lambda c: c.attendance_rate, reverse=True)[:k],
        "top_absence": sorted(rates, key=lambda c: c.absence_rate, reverse=True)[:k],
    }


def student_history(records: Iterable[DailyAttendance], student_id: str) -> List[HistoryEntry]:
    """The student's (date, status) entries, newest first."""
    history = [
        HistoryEntry(date=record.date, status=entry.status)
        for record in records
        for entry in record.records
        if entry.student_id == student_id
    ]
    return sorted(history, key=lambda h: h.date, reverse=True)


def absences_by_weekday(records: Iterable[DailyAttendance]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        try:
            weekday = ARABIC_WEEKDAYS[date_cls.fromisoformat(record.date).weekday()]
        except ValueError:
            continue
        for entry in record.records:
            if entry.status == AttendanceStatus.ABSENT:
                counts[weekday] = counts.get(weekday, 0) + 1
    return counts


def flatten(records: Iterable[DailyAttendance]):
    """(record, entry) pairs in input order."""
    for record in records:
        for entry in record.records:
            yield record, entry


def student_counts(records: Iterable[DailyAttendance]) -> Dict[str, Dict[str, int]]:
    """student_id → {"absent", "late"} tallies."""
    counts: Dict[str, Dict[str, int]] = {}
    for record, entry in flatten(records):
        if entry.status == AttendanceStatus.PRESENT:
            continue
        tally = counts.setdefault(entry.student_id, {"absent": 0, "late": 0})
        if entry.status == AttendanceStatus.ABSENT:
            tally["absent"] += 1
        else:
            tally["late"] += 1
    return counts
