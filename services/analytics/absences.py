"""
services/analytics/absences.py

Consecutive-absence detection and the at-risk list built on it.

A run is a sequence of consecutive *recorded* school days (not calendar days)
on which the student was ABSENT without an excuse. A PRESENT or LATE entry
ends the run, and so does an absence that `breaks_run` says is excused.
"""

from __future__ import annotations

from typing import Callable, Collection, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from schemas.enums import AttendanceStatus, RequestStatus
from services.analytics.attendance import DailyAttendance
from services.analytics.excuses import ExcuseIndex, has_live_excuse, is_unexcused


class AbsenceRun(BaseModel):
    student_id: str
    student_name: str
    grade: str = ""
    class_name: str = ""
    days: int = 0
    last_date: Optional[str] = None
    dates: List[str] = Field(default_factory=list)


class RiskList(BaseModel):
    active: List[AbsenceRun] = Field(default_factory=list)
    follow_up: List[AbsenceRun] = Field(default_factory=list)


class AbsenceProfile(BaseModel):
    student_id: str
    student_name: str
    grade: str = ""
    class_name: str = ""
    absent: int = 0            # unexcused
    excused_absent: int = 0
    late: int = 0
    risk_level: str = "low"


# (student_id, student_name, date) -> True when that absence must not count toward a run
ExcusePredicate = Callable[[str, str, str], bool]


def never_excused(student_id: str, student_name: str, date: str) -> bool:
    return False


def approved_excuse(index: ExcuseIndex) -> ExcusePredicate:
    """Monitor view: only an APPROVED excuse breaks a run."""
    def _check(student_id, student_name, date):
        return index.status(student_id, student_name, date) == RequestStatus.APPROVED
    return _check


def live_excuse(index: ExcuseIndex) -> ExcusePredicate:
    """Save-time alerts: a PENDING or APPROVED excuse breaks a run."""
    def _check(student_id, student_name, date):
        return has_live_excuse(index.status(student_id, student_name, date))
    return _check


def _histories(records: Iterable[DailyAttendance]) -> Dict[str, list]:
    histories: Dict[str, list] = {}
    for record in records:
        for entry in record.records:
            histories.setdefault(entry.student_id, []).append((record.date, entry, record))
    for history in histories.values():
        history.sort(key=lambda item: item[0])
    return histories


def current_run(history, student_id: str, breaks_run: ExcusePredicate = never_excused) -> AbsenceRun:
    """
    Walk one student's entries oldest → newest and return the run that is still
    open at the newest entry.
    history: iterable of (date, StudentEntry, record), ascending by date.
    """
    run = AbsenceRun(student_id=student_id, student_name="")
    for date, entry, record in history:
        run.student_name = entry.student_name or run.student_name
        run.grade, run.class_name = record.grade, record.class_name
        if entry.status == AttendanceStatus.ABSENT and not breaks_run(student_id, entry.student_name, date):
            run.days += 1
            run.dates.append(date)
            run.last_date = date
        else:
            run.days = 0
            run.dates = []
            run.last_date = None
    return run


def detect_runs(
    records: Iterable[DailyAttendance],
    threshold: int = 3,
    breaks_run: ExcusePredicate = never_excused,
) -> List[AbsenceRun]:
    """Students whose open run is at least `threshold` long, longest first."""
    flagged = []
    for student_id, history in _histories(records).items():
        run = current_run(history, student_id, breaks_run)
        if run.days >= threshold:
            flagged.append(run)
    return sorted(flagged, key=lambda r: r.days, reverse=True)


def run_for_student(
    records: Iterable[DailyAttendance],
    student_id: str,
    breaks_run: ExcusePredicate = never_excused,
) -> AbsenceRun:
    history = _histories(records).get(student_id, [])
    return current_run(history, student_id, breaks_run)


def build_risk_list(
    runs: Iterable[AbsenceRun],
    excuses: ExcuseIndex,
    resolved_ids: Collection[str] = (),
    follow_up_ids: Collection[str] = (),
) -> RiskList:
    """
    Split flagged runs into the active list and the follow-up bucket.
    - resolved_ids: students with a recent persisted resolve action (dropped entirely)
    - follow_up_ids: students moved to follow-up in this session
    - an active entry is suppressed when its latest absence has a live (non-rejected) excuse
    """
    risk = RiskList()
    for run in runs:
        if run.student_id in resolved_ids:
            continue
        if run.student_id in follow_up_ids:
            risk.follow_up.append(run)
            continue
        if has_live_excuse(excuses.status(run.student_id, run.student_name, run.last_date)):
            continue
        risk.active.append(run)
    return risk


def risk_level(unexcused_absences: int, high: int = 10, medium: int = 3) -> str:
    if unexcused_absences >= high:
        return "high"
    if unexcused_absences >= medium:
        return "medium"
    return "low"


def absence_profiles(
    students: Iterable,
    records: Iterable[DailyAttendance],
    excuses: ExcuseIndex,
    high: int = 10,
    medium: int = 3,
) -> List[AbsenceProfile]:
    """
    Per-student absence counts for the attendance monitor, most unexcused first.
    Only students present in `students` are counted; an absence is excused only
    by an APPROVED request.
    """
    profiles: Dict[str, AbsenceProfile] = {}
    for s in students:
        if s.student_id:
            profiles[s.student_id] = AbsenceProfile(
                student_id=s.student_id, student_name=s.name, grade=s.grade, class_name=s.class_name
            )

    for record in records:
        for entry in record.records:
            profile = profiles.get(entry.student_id)
            if profile is None:
                continue
            if entry.status == AttendanceStatus.ABSENT:
                status = excuses.status(entry.student_id, entry.student_name, record.date)
                if is_unexcused(status):
                    profile.absent += 1
                else:
                    profile.excused_absent += 1
            elif entry.status == AttendanceStatus.LATE:
                profile.late += 1

    for profile in profiles.values():
        profile.risk_level = risk_level(profile.absent, high, medium)

    return sorted(profiles.values(), key=lambda p: p.absent, reverse=True)
