from models.notifications import Notification
from services import attendance_service

GRADE, CLASS = "الأول متوسط", "1"


def add_students(client, admin, *students):
    for sid, name in students:
        r = client.post("/v1/students", json={
            "student_id": sid, "name": name, "grade": GRADE, "class_name": CLASS, "phone": "0500000000",
        }, headers=admin)
        assert r.status_code == 200, r.text


def save_roll(client, headers, date, *entries):
    r = client.post("/v1/attendance", json={
        "date": date, "grade": GRADE, "class_name": CLASS,
        "records": [{"student_id": sid, "student_name": name, "status": status} for sid, name, status in entries],
    }, headers=headers)
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_saving_same_class_day_replaces_roll(client, login_staff):
    teacher = login_staff()
    first = save_roll(client, teacher, "2024-05-01", ("s1", "علي", "ABSENT"))
    second = save_roll(client, teacher, "2024-05-01", ("s1", "علي", "PRESENT"))
    assert first["id"] == second["id"]
    r = client.get("/v1/attendance/class", params={"date": "2024-05-01", "grade": GRADE, "class_name": CLASS}, headers=teacher)
    assert r.json()["data"]["records"][0]["status"] == "PRESENT"


def test_bad_date_is_rejected(client, login_staff):
    teacher = login_staff()
    r = client.post("/v1/attendance", json={"date": "01/05/2024", "grade": GRADE, "class_name": CLASS, "records": []}, headers=teacher)
    assert r.status_code == 400


def test_absent_and_late_notify_parents(client, db, login_staff):
    teacher = login_staff()
    save_roll(client, teacher, "2024-05-01", ("s1", "علي", "ABSENT"), ("s2", "عمر", "LATE"), ("s3", "سعد", "PRESENT"))
    rows = {n.target_user_id: n for n in db.query(Notification).all()}
    assert rows["s1"].type == "alert"
    assert rows["s2"].type == "info"
    assert "s3" not in rows


def test_streak_alert_fires_on_third_unexcused_day_only(client, db, login_staff):
    deputy = login_staff(passcode="2222", name="الوكيل", permissions=("deputy",))
    teacher = login_staff()
    for date in ("2024-05-01", "2024-05-02", "2024-05-05", "2024-05-06"):
        save_roll(client, teacher, date, ("s1", "علي", "ABSENT"))

    streak = db.query(Notification).filter(Notification.title == "إنذار انقطاع (الدرجة الأولى)").all()
    assert len(streak) == 1
    assert streak[0].target_user_id == "s1"
    staff_alerts = db.query(Notification).filter(Notification.title == "مؤشر خطر غياب").all()
    assert len(staff_alerts) == 1

    me = client.get("/v1/auth/me", headers=deputy).json()["data"]
    assert staff_alerts[0].target_user_id == str(me["staff"]["id"])


def test_pending_excuse_stops_streak_alert(client, db, login_staff, login_parent):
    teacher = login_staff()
    parent = login_parent("1000000001")
    r = client.post("/v1/requests", json={
        "student_id": "1000000001", "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "date": "2024-05-02", "reason": "مراجعة طبية",
    }, headers=parent)
    assert r.status_code == 200, r.text
    for date in ("2024-05-01", "2024-05-02", "2024-05-05"):
        save_roll(client, teacher, date, ("1000000001", "علي", "ABSENT"))
    assert db.query(Notification).filter(Notification.title == "إنذار انقطاع (الدرجة الأولى)").count() == 0


def test_risk_list_resolve_and_follow_up(client, db, admin, login_staff):
    teacher = login_staff()
    for date in ("2024-05-01", "2024-05-02", "2024-05-05"):
        save_roll(client, teacher, date, ("s1", "علي", "ABSENT"), ("s2", "عمر", "ABSENT"))

    risk = client.get("/v1/dashboard/risk-list", headers=teacher).json()["data"]
    assert {r["student_id"] for r in risk["active"]} == {"s1", "s2"}

    client.post("/v1/dashboard/risk-list/follow-up", json={"student_id": "s2"}, headers=teacher)
    risk = client.get("/v1/dashboard/risk-list", headers=teacher).json()["data"]
    assert [r["student_id"] for r in risk["active"]] == ["s1"]
    assert [r["student_id"] for r in risk["follow_up"]] == ["s2"]

    # the follow-up bucket belongs to the session that filled it
    other = client.get("/v1/dashboard/risk-list", headers=admin).json()["data"]
    assert {r["student_id"] for r in other["active"]} == {"s1", "s2"}

    client.post("/v1/dashboard/risk-list/resolve", json={"student_id": "s1", "action": "call"}, headers=teacher)
    assert attendance_service.resolved_student_ids(db, 1) == {"s1"}
    risk = client.get("/v1/dashboard/risk-list", headers=teacher).json()["data"]
    assert risk["active"] == []


def test_daily_report_and_admin_stats(client, admin, login_staff):
    teacher = login_staff()
    add_students(client, admin, ("s1", "علي"), ("s2", "عمر"), ("s3", "سعد"))
    save_roll(client, teacher, "2024-05-01", ("s1", "علي", "ABSENT"), ("s2", "عمر", "LATE"), ("s3", "سعد", "PRESENT"))

    report = client.get("/v1/attendance/report", params={"date": "2024-05-01"}, headers=admin).json()["data"]
    assert (report["total_present"], report["total_absent"], report["total_late"]) == (1, 1, 1)

    stats = client.get("/v1/dashboard/admin-stats", headers=admin).json()["data"]
    assert stats["totals"]["total"] == 3
    assert stats["top_absent_students"][0]["key"] == "s1"

    teacher_report = client.get("/v1/dashboard/teacher-report", params={"date": "2024-05-01"}, headers=teacher).json()["data"]
    assert teacher_report["total_present"] == 1
    assert teacher_report["classes"][0]["rate"] == 67


def test_daily_report_shows_excuse_status_per_row(client, admin, login_staff, login_parent):
    teacher = login_staff()
    parent = login_parent("1000000001")
    request_id = client.post("/v1/requests", json={
        "student_id": "1000000001", "student_name": "أحمد", "grade": GRADE, "class_name": CLASS,
        "date": "2024-05-01", "reason": "مراجعة طبية",
    }, headers=parent).json()["data"]["id"]
    r = client.put(f"/v1/requests/{request_id}/status", json={"status": "APPROVED"}, headers=admin)
    assert r.status_code == 200, r.text

    save_roll(
        client, teacher, "2024-05-01",
        ("1000000001", "أحمد", "ABSENT"), ("1000000002", "بدر", "LATE"), ("1000000003", "خالد", "ABSENT"),
    )

    report = client.get("/v1/attendance/report", params={"date": "2024-05-01"}, headers=admin).json()["data"]
    assert (report["total_absent"], report["total_late"]) == (2, 1)
    excuse = {row["student_id"]: row["excuse_status"] for row in report["details"]}
    assert excuse["1000000001"] == "APPROVED"
    assert excuse["1000000003"] is None


def test_teacher_report_forbidden_for_parents(client, login_parent):
    parent = login_parent()
    assert client.get("/v1/dashboard/teacher-report", headers=parent).status_code == 403
