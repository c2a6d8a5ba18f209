import pytest

from models.notifications import Notification
from services import entity_store
from services.exceptions import DeleteNotAllowed, EntityNotFound

GRADE, CLASS = "الأول متوسط", "1"
CHILD = "1000000001"


def behavior_body(student_id=CHILD, date="2024-05-01", name="تأخر صباحي"):
    return {
        "student_id": student_id, "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "date": date, "violation_degree": "الأولى", "violation_name": name, "action_taken": "تنبيه شفهي",
    }


def referral_body():
    return {
        "student_id": CHILD, "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "referral_date": "2024-05-01", "reason": "تكرار الغياب",
    }


# ==========================================================
# Behavior / observations / deletes
# ==========================================================
def test_behavior_lifecycle_and_parent_ack(client, db, login_staff, login_parent):
    teacher = login_staff()
    r = client.post("/v1/behaviors", json=behavior_body(), headers=teacher)
    assert r.status_code == 200, r.text
    behavior_id = r.json()["data"]["id"]
    assert db.query(Notification).filter(Notification.target_user_id == CHILD).count() == 1

    parent = login_parent(CHILD)
    listed = client.get("/v1/behaviors", headers=parent).json()["data"]
    assert [b["id"] for b in listed] == [behavior_id]

    r = client.post(f"/v1/behaviors/{behavior_id}/acknowledge", json={"feedback": "تم التنبيه"}, headers=parent)
    assert r.json()["data"]["parent_viewed"] is True

    assert client.delete(f"/v1/behaviors/{behavior_id}", headers=teacher).status_code == 200
    assert client.get("/v1/behaviors", headers=teacher).json()["data"] == []


def test_parent_cannot_read_other_students(client, login_parent):
    parent = login_parent(CHILD)
    r = client.get("/v1/behaviors", params={"student_id": "2000000002"}, headers=parent)
    assert r.status_code == 403


def test_records_of_another_school_are_not_found(client, login_staff):
    teacher = login_staff()
    behavior_id = client.post("/v1/behaviors", json=behavior_body(), headers=teacher).json()["data"]["id"]
    client.post("/v1/auth/schools", json={"name": "مدرسة ثانية", "school_code": "OTHER", "admin_password": "pass1"})
    token = client.post("/v1/auth/school", json={"school_code": "OTHER"}).json()["data"]["token"]
    other = {"Authorization": f"Bearer {token}"}
    client.post("/v1/auth/admin", json={"password": "pass1"}, headers=other)
    assert client.put(f"/v1/behaviors/{behavior_id}", json={"notes": "x"}, headers=other).status_code == 404


@pytest.mark.parametrize("store", [entity_store.requests, entity_store.referrals, entity_store.exit_permissions, entity_store.attendance])
def test_non_deletable_entities(client, db, store):
    with pytest.raises(DeleteNotAllowed):
        store.delete(db, 1, 1)


def test_delete_of_missing_record_is_not_found(client, db):
    with pytest.raises(EntityNotFound):
        entity_store.guidance.delete(db, 1, 999)


def test_observation_notification_type(client, db, login_staff):
    teacher = login_staff()
    body = {
        "student_id": CHILD, "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "date": "2024-05-01", "type": "positive", "content": "مشاركة متميزة",
    }
    assert client.post("/v1/observations", json=body, headers=teacher).status_code == 200
    n = db.query(Notification).filter(Notification.target_user_id == CHILD).one()
    assert n.type == "success"
    assert n.title == "تعزيز إيجابي"


# ==========================================================
# Referrals
# ==========================================================
def test_referral_workflow(client, login_staff):
    deputy = login_staff(passcode="2222", name="الوكيل", permissions=("deputy",))
    counselor = login_staff(passcode="3333", name="الموجه", permissions=("students",))

    referral_id = client.post("/v1/referrals", json=referral_body(), headers=deputy).json()["data"]["id"]

    # closing a pending referral is not a legal move
    r = client.post(f"/v1/referrals/{referral_id}/close", json={"text": "قرار"}, headers=deputy)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INVALID_TRANSITION"

    # accept belongs to the counselor
    assert client.post(f"/v1/referrals/{referral_id}/accept", headers=deputy).status_code == 403
    assert client.post(f"/v1/referrals/{referral_id}/accept", headers=counselor).json()["data"]["status"] == "in_progress"

    r = client.post(f"/v1/referrals/{referral_id}/return_to_deputy", json={"text": ""}, headers=counselor)
    assert r.status_code == 400
    r = client.post(f"/v1/referrals/{referral_id}/return_to_deputy", json={"text": "تمت جلسة إرشادية"}, headers=counselor)
    assert r.json()["data"]["outcome"] == "تمت جلسة إرشادية"

    r = client.post(f"/v1/referrals/{referral_id}/close", json={"text": "إغلاق مع متابعة"}, headers=deputy)
    assert r.json()["data"]["status"] == "resolved"

    assert client.post(f"/v1/referrals/{referral_id}/accept", headers=counselor).status_code == 409


def test_referral_reminders(client, db, login_staff):
    deputy = login_staff(passcode="2222", name="الوكيل", permissions=("deputy",))
    client.post("/v1/referrals", json=referral_body(), headers=deputy)
    r = client.post("/v1/referrals/reminders", headers=deputy)
    assert r.json()["data"]["sent"] == 1
    assert db.query(Notification).filter(Notification.title == "تذكير: إحالات معلقة").count() == 1


# ==========================================================
# Excuse requests
# ==========================================================
def test_request_approval_notifies_parent(client, db, admin, login_parent):
    parent = login_parent(CHILD)
    body = {
        "student_id": CHILD, "student_name": "علي", "grade": GRADE, "class_name": CLASS,
        "date": "2024-05-01", "reason": "ظرف عائلي",
    }
    request_id = client.post("/v1/requests", json=body, headers=parent).json()["data"]["id"]
    assert client.get("/v1/requests/pending-count", headers=admin).json()["data"]["pending"] == 1

    r = client.put(f"/v1/requests/{request_id}/status", json={"status": "APPROVED"}, headers=admin)
    assert r.json()["data"]["status"] == "APPROVED"
    messages = [n.message for n in db.query(Notification).filter(Notification.target_user_id == CHILD)]
    assert "تم قبول العذر المقدم." in messages


def test_parent_cannot_file_for_unlinked_student(client, login_parent):
    parent = login_parent(CHILD)
    body = {
        "student_id": "2000000002", "student_name": "عمر", "grade": GRADE, "class_name": CLASS,
        "date": "2024-05-01", "reason": "ظرف عائلي",
    }
    assert client.post("/v1/requests", json=body, headers=parent).status_code == 403


def test_attachment_upload_validation(client, file_store, login_parent):
    parent = login_parent(CHILD)
    r = client.post("/v1/requests/attachments", files={"file": ("note.pdf", b"%PDF-1.4", "application/pdf")}, headers=parent)
    assert r.status_code == 200
    assert r.json()["data"]["attachment_url"].endswith("note.pdf")
    assert len(file_store.uploads) == 1

    r = client.post("/v1/requests/attachments", files={"file": ("a.zip", b"PK", "application/zip")}, headers=parent)
    assert r.status_code == 415

    big = b"0" * (5 * 1024 * 1024 + 1)
    r = client.post("/v1/requests/attachments", files={"file": ("big.png", big, "image/png")}, headers=parent)
    assert r.status_code == 413
    assert len(file_store.uploads) == 1


def test_attachment_is_stored_off_the_event_loop(client, file_store, login_parent):
    parent = login_parent(CHILD)
    r = client.post("/v1/requests/attachments", files={"file": ("scan.png", b"\x89PNG", "image/png")}, headers=parent)
    assert r.status_code == 200
    assert file_store.on_event_loop == [False]
