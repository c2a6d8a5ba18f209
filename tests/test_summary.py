from datetime import datetime, timedelta
from types import SimpleNamespace

from schemas.enums import AttendanceStatus as S, RequestStatus as R
from services.analytics import summary
from services.analytics.attendance import FullDailyAttendance, HistoryEntry, SparseDailyAttendance, StudentEntry

STUDENT = SimpleNamespace(student_id="s1", name="علي")


def req(date, status, student_id="s1", name="علي"):
    return SimpleNamespace(id=1, student_id=student_id, student_name=name, date=date, status=status.value)


def test_student_overview_counts():
    history = [
        HistoryEntry(date="2024-05-04", status=S.ABSENT),
        HistoryEntry(date="2024-05-03", status=S.ABSENT),
        HistoryEntry(date="2024-05-02", status=S.LATE),
        HistoryEntry(date="2024-05-01", status=S.PRESENT),
        HistoryEntry(date="2024-04-30", status=S.ABSENT),
    ]
    requests = [req("2024-05-04", R.APPROVED), req("2024-05-03", R.PENDING), req("2024-04-30", R.REJECTED)]
    overview = summary.student_overview(STUDENT, history, requests, exits=[object(), object()], points_total=15)
    assert overview.present_days == 1
    assert overview.late_count == 1
    assert overview.excused_absences == 1
    assert overview.unexcused_absences == 2
    # a pending excuse is not "missing", a rejected one is
    assert overview.missing_excuses == ["2024-04-30"]
    assert overview.exit_count == 2
    assert overview.points_total == 15


def test_student_overview_latest_items_sorted_not_fetch_order():
    behaviors = [
        SimpleNamespace(id=1, date="2024-05-01", created_at=datetime(2024, 5, 1), violation_name="تأخر", action_taken="تنبيه"),
        SimpleNamespace(id=2, date="2024-05-09", created_at=datetime(2024, 5, 9), violation_name="هروب", action_taken="إنذار"),
        SimpleNamespace(id=3, date="2024-05-03", created_at=datetime(2024, 5, 3), violation_name="غش", action_taken="حسم"),
    ]
    observations = [
        SimpleNamespace(id=5, date="2024-05-02", created_at=datetime(2024, 5, 2, 8), type="positive", content="متميز"),
        SimpleNamespace(id=6, date="2024-05-02", created_at=datetime(2024, 5, 2, 12), type="academic", content="واجب"),
    ]
    overview = summary.student_overview(STUDENT, [], [], behaviors=behaviors, observations=observations)
    assert overview.latest_violation.id == 2
    assert overview.latest_observation.id == 6


def test_student_overview_empty():
    overview = summary.student_overview(STUDENT, [], [])
    assert overview.latest_violation is None
    assert overview.missing_excuses == []


def test_teacher_daily_report_rate_counts_late_as_attended():
    roster = [SimpleNamespace(grade="1", class_name="A") for _ in range(10)]
    records = [SparseDailyAttendance(date="2024-05-01", grade="1", class_name="A", records=(
        StudentEntry(student_id="s1", student_name="علي", status=S.ABSENT),
        StudentEntry(student_id="s2", student_name="عمر", status=S.LATE),
    ))]
    report = summary.teacher_daily_report("2024-05-01", records, roster, [req("2024-05-01", R.PENDING)], [("1", "A")])
    assert (report.total_present, report.total_absent, report.total_late) == (8, 1, 1)
    assert report.classes[0].rate == 90
    assert report.details[0].excuse_status == R.PENDING
    assert report.details[1].excuse_status is None


def test_admin_stats_and_executive_inputs():
    records = [
        FullDailyAttendance(date="2024-05-01", grade="الأول", class_name="1", records=(
            StudentEntry(student_id="s1", student_name="علي", status=S.ABSENT),
            StudentEntry(student_id="s2", student_name="عمر", status=S.PRESENT),
        )),
        FullDailyAttendance(date="2024-05-01", grade="الثاني", class_name="1", records=(
            StudentEntry(student_id="s3", student_name="سعد", status=S.PRESENT),
            StudentEntry(student_id="s4", student_name="فهد", status=S.LATE),
        )),
    ]
    observations = [SimpleNamespace(type="positive", student_id="s2", student_name="عمر", grade="الأول", class_name="1")]
    stats = summary.admin_stats(records, [], observations)
    assert stats.rates == {"present": 50, "absent": 25, "late": 25}
    assert stats.top_absent_students[0].key == "s1"
    assert stats.observation_sentiment == {"positive": 1, "negative": 0}
    inputs = summary.executive_inputs(stats, records, risk_count=4)
    assert inputs["most_absent_grade"] == "الأول"
    assert inputs["risk_count"] == 4
    assert inputs["attendance_rate"] == 50


def test_exit_permission_active_window():
    now = datetime(2024, 5, 1, 10, 0)
    fresh = SimpleNamespace(status="pending_pickup", created_at=now - timedelta(minutes=30))
    stale = SimpleNamespace(status="pending_pickup", created_at=now - timedelta(minutes=61))
    used = SimpleNamespace(status="completed", created_at=now - timedelta(minutes=5))
    assert summary.is_exit_active(fresh, now)
    assert not summary.is_exit_active(stale, now)
    assert not summary.is_exit_active(used, now)
    assert summary.active_exit([used, stale, fresh], now) is fresh


def test_active_appointment_requires_pending_and_upcoming_slot():
    past = SimpleNamespace(status="pending", slot=SimpleNamespace(date="2024-04-30"))
    done = SimpleNamespace(status="completed", slot=SimpleNamespace(date="2024-05-03"))
    upcoming = SimpleNamespace(status="pending", slot=SimpleNamespace(date="2024-05-01"))
    assert summary.active_appointment([past, done], "2024-05-01") is None
    assert summary.active_appointment([past, done, upcoming], "2024-05-01") is upcoming


def test_deputy_stats():
    behaviors = [SimpleNamespace(date="2024-05-01"), SimpleNamespace(date="2024-04-01")]
    referrals = [SimpleNamespace(status="resolved"), SimpleNamespace(status="pending")]
    stats = summary.deputy_stats(behaviors, "2024-05-01", 3, referrals)
    assert stats["today_violations"] == 1
    assert stats["referrals_open"] == 1
    assert stats["at_risk_count"] == 3
