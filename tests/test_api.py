from __future__ import annotations

from app.core.config import settings
from fakes import auth_header


def _submit(client, account_id, future_day, files=None, **overrides):
    form = {
        "title": "Cultural fest",
        "od_type": "cultural",
        "event_name": "Spring Fest",
        "od_date": future_day.isoformat(),
        "timings": "10:00 AM - 4:00 PM",
    }
    form.update(overrides)
    return client.post("/api/student/od", data=form, files=files, headers=auth_header(account_id))


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_unknown_token_is_rejected(client):
    resp = client.get("/api/auth/me", headers=auth_header("nobody"))
    assert resp.status_code == 401


def test_me_returns_resolved_profile(client, db):
    db.add_teacher("tch-1", name="Dr. Rao")

    resp = client.get("/api/auth/me", headers=auth_header("tch-1"))

    body = resp.json()["data"]
    assert body["role"] == "teacher"
    assert body["profile"]["name"] == "Dr. Rao"


def test_student_cannot_use_teacher_endpoints(client, db):
    db.add_student("stu-1")

    resp = client.get("/api/teacher/od/pending", headers=auth_header("stu-1"))

    assert resp.status_code == 403


def test_od_request_round_trip(client, db, future_day):
    db.add_student("stu-1", name="Asha")
    db.add_teacher("tch-1")

    created = _submit(client, "stu-1", future_day)
    assert created.status_code == 200
    od_id = created.json()["data"]["id"]

    pending = client.get("/api/teacher/od/pending", headers=auth_header("tch-1")).json()["data"]
    assert [p["id"] for p in pending] == [od_id]
    assert pending[0]["student"]["name"] == "Asha"

    blank = client.patch(f"/api/teacher/od/{od_id}/reject", json={"rejection_reason": " "}, headers=auth_header("tch-1"))
    assert blank.status_code == 400
    assert blank.json() == {"success": False, "data": None, "message": "Please provide a reason for rejection"}

    approved = client.patch(f"/api/teacher/od/{od_id}/approve", headers=auth_header("tch-1"))
    assert approved.json()["data"]["approved_by"] == "tch-1"

    again = client.patch(f"/api/teacher/od/{od_id}/approve", headers=auth_header("tch-1"))
    assert again.status_code == 409

    mark = client.post(f"/api/student/attendance/{od_id}", json={"is_present": True}, headers=auth_header("stu-1"))
    assert mark.status_code == 200
    assert mark.json()["message"] == "Attendance marked as present"

    status = client.get(f"/api/student/attendance/{od_id}", headers=auth_header("stu-1")).json()["data"]
    assert status["can_mark"] is False
    assert status["record"]["is_present"] is True

    duplicate = client.post(f"/api/student/attendance/{od_id}", json={"is_present": False}, headers=auth_header("stu-1"))
    assert duplicate.status_code == 409
    assert len(db.rows("attendance")) == 1

    calendar = client.get("/api/teacher/attendance/calendar", headers=auth_header("tch-1")).json()["data"]
    assert calendar["dates"] == [future_day.isoformat()]


def test_missing_required_field_is_refused(client, db, future_day):
    db.add_student("stu-1")

    resp = _submit(client, "stu-1", future_day, timings="")

    assert resp.status_code == 400
    assert resp.json()["message"].startswith("timings")
    assert db.rows("od_requests") == []


def test_upload_failure_reports_error_and_creates_nothing(client, db, future_day):
    db.add_student("stu-1")
    db.fail_on.add(("storage", "upload"))

    resp = _submit(client, "stu-1", future_day, files={"attachment": ("letter.pdf", b"%PDF", "application/pdf")})

    assert resp.status_code == 502
    assert resp.json()["message"] == "Failed to upload attachment"
    assert db.rows("od_requests") == []
    assert db.objects == {}


def test_attachment_is_linked_on_request(client, db, future_day):
    db.add_student("stu-1")

    resp = _submit(client, "stu-1", future_day, files={"attachment": ("letter.pdf", b"%PDF", "application/pdf")})

    url = resp.json()["data"]["attachment_url"]
    assert url.startswith("https://storage.test/od-attachments/stu-1/")


def test_student_sees_only_own_requests(client, db, future_day):
    db.add_student("stu-1")
    db.add_student("stu-2")
    mine = _submit(client, "stu-1", future_day).json()["data"]["id"]
    theirs = _submit(client, "stu-2", future_day).json()["data"]["id"]

    listed = client.get("/api/student/od", headers=auth_header("stu-1")).json()["data"]
    assert [r["id"] for r in listed] == [mine]

    resp = client.get(f"/api/student/od/{theirs}", headers=auth_header("stu-1"))
    assert resp.status_code == 403


def test_dashboards(client, db, future_day):
    db.add_student("stu-1")
    db.add_teacher("tch-1")
    first = _submit(client, "stu-1", future_day).json()["data"]["id"]
    _submit(client, "stu-1", future_day)
    client.patch(f"/api/teacher/od/{first}/approve", headers=auth_header("tch-1"))

    student = client.get("/api/student/dashboard", headers=auth_header("stu-1")).json()["data"]
    assert student["stats"] == {"total": 2, "pending": 1, "approved": 1, "rejected": 0}
    assert len(student["recent_requests"]) == 2

    teacher = client.get("/api/teacher/dashboard", headers=auth_header("tch-1")).json()["data"]
    assert teacher["stats"] == {
        "total_requests": 2,
        "pending_requests": 1,
        "approved_requests": 1,
        "total_students": 1,
    }
    assert len(teacher["recent_pending"]) == 1


def test_student_directory_filters(client, db, future_day):
    db.add_student("stu-1", name="Asha", department="CSE")
    db.add_student("stu-2", name="Bala", department="ECE", register_number="ECE042")
    db.add_teacher("tch-1")
    _submit(client, "stu-2", future_day)

    everyone = client.get("/api/teacher/students", headers=auth_header("tch-1")).json()["data"]
    assert everyone["departments"] == ["CSE", "ECE"]
    counts = {s["user_id"]: s["od_requests_count"] for s in everyone["students"]}
    assert counts == {"stu-1": 0, "stu-2": 1}

    found = client.get("/api/teacher/students", params={"search": "ece04"}, headers=auth_header("tch-1")).json()["data"]
    assert [s["user_id"] for s in found["students"]] == ["stu-2"]

    cse = client.get("/api/teacher/students", params={"department": "CSE"}, headers=auth_header("tch-1")).json()["data"]
    assert [s["user_id"] for s in cse["students"]] == ["stu-1"]


def test_events_catalog(client, db, future_day):
    db.add_student("stu-1")
    db.add_teacher("tch-1")

    denied = client.post("/api/events", json={"title": "Expo", "event_date": future_day.isoformat()}, headers=auth_header("stu-1"))
    assert denied.status_code == 403

    client.post("/api/events", json={"title": "Expo", "event_date": future_day.isoformat()}, headers=auth_header("tch-1"))
    client.post("/api/events", json={"title": "Early", "event_date": "2000-01-05"}, headers=auth_header("tch-1"))

    listed = client.get("/api/events", headers=auth_header("stu-1")).json()["data"]
    assert [e["title"] for e in listed] == ["Early", "Expo"]


def test_mock_signup_then_login(client, db):
    resp = client.post("/api/auth/signup/student", json={
        "email": "new@college.test",
        "password": "secret123",
        "name": "Chitra",
        "register_number": "CSE101",
        "department": "CSE",
        "section": "B",
    })
    assert resp.status_code == 200
    account_id = resp.json()["data"]["user_id"]

    login = client.post("/api/auth/login", json={"email": "new@college.test", "password": "secret123"}).json()["data"]
    assert login["token"] == f"mock-{account_id}"
    assert login["user"]["role"] == "student"
    assert login["user"]["profile"]["section"] == "B"

    me = client.get("/api/auth/me", headers=auth_header(account_id)).json()["data"]
    assert login["user"] == me

    again = client.post("/api/auth/signup/student", json={
        "email": "new@college.test",
        "password": "x",
        "name": "Dup",
        "register_number": "1",
        "department": "CSE",
        "section": "B",
    })
    assert again.status_code == 400


def test_logout(client, db):
    db.add_student("stu-1")

    resp = client.post("/api/auth/logout", headers=auth_header("stu-1"))

    assert resp.json()["message"] == "Signed out"
    assert ("auth", "sign_out") not in db.calls


def test_my_requests_limit(client, db, future_day):
    db.add_student("stu-1")
    _submit(client, "stu-1", future_day)
    _submit(client, "stu-1", future_day, title="Workshop")

    one = client.get("/api/student/od?limit=1", headers=auth_header("stu-1"))
    assert one.status_code == 200
    assert len(one.json()["data"]) == 1

    zero = client.get("/api/student/od?limit=0", headers=auth_header("stu-1"))
    assert zero.status_code == 422


def test_profileless_account_in_supabase_mode(client, db, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "supabase")
    db.accounts["jwt-new"] = ("acc-new", "new@college.test")
    headers = {"Authorization": "Bearer jwt-new"}

    me = client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    body = me.json()["data"]
    assert body["user_id"] == "acc-new"
    assert body["role"] is None
    assert body["profile"] is None

    pending = client.get("/api/teacher/od/pending", headers=headers)
    assert pending.status_code == 403
    assert ("od_requests", "select") not in db.calls


def test_logout_in_supabase_mode_revokes_session(client, db, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_MODE", "supabase")
    db.add_teacher("tch-1")
    db.accounts["jwt-tch"] = ("tch-1", "tch-1@college.test")

    resp = client.post("/api/auth/logout", headers={"Authorization": "Bearer jwt-tch"})

    assert resp.status_code == 200
    assert db.auth.admin.signed_out == ["jwt-tch"]
