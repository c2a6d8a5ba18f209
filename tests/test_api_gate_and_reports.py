from models.notifications import Notification

GRADE, CLASS = "الأول متوسط", "1"
CHILD = "1000000001"
FUTURE = "2099-01-01"


def booking(slot_id, student_id=CHILD):
    return {
        "slot_id": slot_id, "student_id": student_id, "student_name": "علي",
        "parent_name": "أبو علي", "visit_reason": "مناقشة المستوى",
    }


# ==========================================================
# Appointments
# ==========================================================
def test_generate_slots(client, login_staff):
    staff = login_staff()
    slots = client.post("/v1/appointments/slots/generate", json={"date": FUTURE}, headers=staff).json()["data"]
    assert [(s["start_time"], s["end_time"]) for s in slots][:2] == [("08:00", "08:30"), ("08:30", "09:00")]
    assert all(s["max_capacity"] == 3 for s in slots)


def test_slot_end_must_follow_start(client, login_staff):
    staff = login_staff()
    r = client.post("/v1/appointments/slots", json={"date": FUTURE, "start_time": "10:00", "end_time": "09:00"}, headers=staff)
    assert r.status_code == 400


def test_one_active_booking_per_parent(client, login_staff, login_parent):
    staff = login_staff()
    slot = client.post("/v1/appointments/slots", json={"date": FUTURE, "start_time": "08:00", "end_time": "08:30"}, headers=staff).json()["data"]
    parent = login_parent(CHILD)

    r = client.post("/v1/appointments", json=booking(slot["id"]), headers=parent)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["slot"]["current_bookings"] == 1

    r = client.post("/v1/appointments", json=booking(slot["id"]), headers=parent)
    assert r.status_code == 409


def test_full_slot_and_past_slot(client, login_staff, login_parent):
    staff = login_staff()
    full = client.post("/v1/appointments/slots", json={
        "date": FUTURE, "start_time": "08:00", "end_time": "08:30", "max_capacity": 1,
    }, headers=staff).json()["data"]
    past = client.post("/v1/appointments/slots", json={"date": "2000-01-01", "start_time": "08:00", "end_time": "08:30"}, headers=staff).json()["data"]

    assert client.post("/v1/appointments", json=booking(full["id"], "1000000001"), headers=login_parent("1000000001")).status_code == 200
    assert client.post("/v1/appointments", json=booking(full["id"], "1000000002"), headers=login_parent("1000000002")).status_code == 409
    assert client.post("/v1/appointments", json=booking(past["id"], "1000000003"), headers=login_parent("1000000003")).status_code == 400


def test_check_in_completes_and_frees_parent(client, db, login_staff, login_parent):
    staff = login_staff()
    slot = client.post("/v1/appointments/slots", json={"date": FUTURE, "start_time": "08:00", "end_time": "08:30"}, headers=staff).json()["data"]
    parent = login_parent(CHILD)
    appointment_id = client.post("/v1/appointments", json=booking(slot["id"]), headers=parent).json()["data"]["id"]

    r = client.post(f"/v1/appointments/{appointment_id}/check-in", headers=staff)
    assert r.json()["data"]["status"] == "completed"
    assert db.query(Notification).filter(Notification.title == "تسجيل دخول").count() == 1
    assert client.post("/v1/appointments", json=booking(slot["id"]), headers=parent).status_code == 200


# ==========================================================
# Exit permissions
# ==========================================================
def test_exit_permission_flow(client, login_staff, login_parent):
    staff = login_staff()
    r = client.post("/v1/exit-permissions", json={
        "student_id": CHILD, "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "parent_name": "أبو علي", "parent_phone": "0500000000", "reason": "موعد طبي",
    }, headers=staff)
    permit = r.json()["data"]
    assert permit["is_active"] is True
    assert permit["created_by_name"] == "أ. خالد"

    parent = login_parent(CHILD)
    mine = client.get("/v1/exit-permissions/mine", headers=parent).json()["data"]
    assert mine["active"]["id"] == permit["id"]

    done = client.post(f"/v1/exit-permissions/{permit['id']}/complete", headers=staff).json()["data"]
    assert done["status"] == "completed"
    assert done["is_active"] is False
    assert client.post(f"/v1/exit-permissions/{permit['id']}/complete", headers=staff).status_code == 409
    assert client.get("/v1/exit-permissions/mine", headers=parent).json()["data"]["active"] is None


# ==========================================================
# Notifications
# ==========================================================
def test_notification_inbox_and_read(client, login_staff, login_parent):
    staff = login_staff()
    client.post("/v1/points", json={"student_id": CHILD, "points": 5, "reason": "تفوق دراسي"}, headers=staff)
    parent = login_parent(CHILD)

    inbox = client.get("/v1/notifications", headers=parent).json()["data"]
    assert len(inbox) == 1
    assert inbox[0]["is_read"] is False

    r = client.put(f"/v1/notifications/{inbox[0]['id']}/read", headers=parent)
    assert r.json()["data"]["is_read"] is True

    other = login_parent("2000000002")
    assert client.get("/v1/notifications", headers=other).json()["data"] == []
    assert client.put(f"/v1/notifications/{inbox[0]['id']}/read", headers=other).status_code == 404


# ==========================================================
# Parent overview / points
# ==========================================================
def test_parent_overview(client, admin, login_staff, login_parent):
    client.post("/v1/students", json={"student_id": CHILD, "name": "علي", "grade": GRADE, "class_name": CLASS}, headers=admin)
    staff = login_staff()
    for date, status in (("2024-05-01", "ABSENT"), ("2024-05-02", "LATE"), ("2024-05-03", "PRESENT")):
        client.post("/v1/attendance", json={
            "date": date, "grade": GRADE, "class_name": CLASS,
            "records": [{"student_id": CHILD, "student_name": "علي", "status": status}],
        }, headers=staff)
    client.post("/v1/points", json={"student_id": CHILD, "points": 10, "reason": "حضور مبكر"}, headers=staff)

    parent = login_parent(CHILD)
    overview = client.get(f"/v1/parents/overview/{CHILD}", headers=parent).json()["data"]
    assert overview["present_days"] == 1
    assert overview["late_count"] == 1
    assert overview["unexcused_absences"] == 1
    assert overview["missing_excuses"] == ["2024-05-01"]
    assert overview["points_total"] == 10

    top = client.get("/v1/points/top", headers=parent).json()["data"]
    assert top == [{"student_id": CHILD, "name": "علي", "grade": GRADE, "class_name": CLASS, "points": 10}]


def test_parent_links_child(client, admin, login_parent):
    client.post("/v1/students", json={"student_id": "2000000002", "name": "عمر", "grade": GRADE, "class_name": CLASS}, headers=admin)
    parent = login_parent(CHILD)
    assert client.get("/v1/parents/overview/2000000002", headers=parent).status_code == 403
    assert client.post("/v1/parents/children", json={"student_id": "2000000002"}, headers=parent).status_code == 200
    assert client.get("/v1/parents/overview/2000000002", headers=parent).status_code == 200


# ==========================================================
# AI reports
# ==========================================================
def test_executive_report(client, admin, generator):
    r = client.post("/v1/reports/executive", headers=admin)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["text"] == generator.reply
    assert body["data"]["inputs"]["most_absent_grade"] == "-"
    assert len(generator.prompts) == 1


def test_ai_failure_returns_fallback_text(client, admin, generator):
    generator.fail = True
    r = client.post("/v1/reports/executive", headers=admin)
    body = r.json()
    assert body["success"] is False
    assert body["data"]["text"] == "تعذر الاتصال بخدمة الذكاء الاصطناعي."


def test_student_report_uses_counselor_name(client, admin, login_staff, generator):
    client.post("/v1/students", json={"student_id": CHILD, "name": "علي", "grade": GRADE, "class_name": CLASS}, headers=admin)
    login_staff(passcode="3333", name="أ. سعد الموجه", permissions=("students",))
    r = client.post("/v1/reports/student", json={"student_id": CHILD}, headers=admin)
    assert r.json()["success"] is True
    assert "أ. سعد الموجه" in generator.prompts[-1]


def test_sentiment_neutral_when_ai_down(client, login_staff, generator):
    generator.fail = True
    staff = login_staff()
    r = client.post("/v1/reports/sentiment", json={"text": "الطالب متعاون جداً"}, headers=staff)
    assert r.json()["data"]["sentiment"] == "neutral"


def test_guidance_plan_needs_counselor(client, login_staff):
    teacher = login_staff()
    assert client.post("/v1/reports/guidance-plan", json={"student_id": CHILD}, headers=teacher).status_code == 403
