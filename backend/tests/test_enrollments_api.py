"""Two-stage enrollment approval over HTTP."""

from app.models.enrollment import Enrollment
from tests.conftest import activate_course, auth_headers

PERIOD = {"academic_year": "2026-2027", "semester": 1}


def open_courses(client, *codes):
    for code in codes:
        activate_course(client, code=code)


def create_draft(client, headers, codes=("CS101", "CS102"), period=PERIOD):
    resp = client.post("/api/enrollments/drafts", json={**period, "course_codes": list(codes)}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def submitted_enrollment(client):
    open_courses(client, "CS101", "CS102")
    student = auth_headers(client, "stu001")
    draft = create_draft(client, student)
    resp = client.post(f"/api/enrollments/{draft['enrollment_id']}/submit", headers=student)
    assert resp.status_code == 200, resp.text
    return resp.json()


def decide(client, emp_id, enrollment_id, stage, action, reason=None):
    body = {"stage": stage, "action": action}
    if reason is not None:
        body["reason"] = reason
    return client.post(f"/api/enrollments/{enrollment_id}/decision", json=body, headers=auth_headers(client, emp_id))


def test_create_and_save_draft(client, seed_users):
    student = auth_headers(client, "stu001")
    draft = create_draft(client, student, codes=["cs101"])
    assert draft["status"] == "draft"
    assert draft["course_codes"] == ["CS101"]
    assert draft["department_code"] == "CSE"

    resp = client.put(
        f"/api/enrollments/{draft['enrollment_id']}/draft",
        json={"course_codes": ["cs102", "CS103", "cs102"]},
        headers=student,
    )
    assert resp.status_code == 200
    assert resp.json()["course_codes"] == ["CS102", "CS103"]


def test_second_live_draft_for_same_period_is_refused(client, seed_users):
    student = auth_headers(client, "stu001")
    create_draft(client, student)
    resp = client.post("/api/enrollments/drafts", json={**PERIOD, "course_codes": []}, headers=student)
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_enrollment"

    other_period = create_draft(client, student, period={"academic_year": "2026-2027", "semester": 2})
    assert other_period["semester"] == 2


def test_new_draft_allowed_after_withdrawal(client, seed_users):
    student = auth_headers(client, "stu001")
    draft = create_draft(client, student)
    resp = client.post(f"/api/enrollments/{draft['enrollment_id']}/withdraw", headers=student)
    assert resp.status_code == 200
    assert resp.json()["status"] == "withdrawn"
    assert create_draft(client, student)["status"] == "draft"


def test_only_students_create_drafts(client, seed_users):
    resp = client.post("/api/enrollments/drafts", json={**PERIOD, "course_codes": []}, headers=auth_headers(client, "fac001"))
    assert resp.status_code == 403


def test_submit_requires_active_courses(client, seed_users):
    activate_course(client, code="CS101")
    student = auth_headers(client, "stu001")
    draft = create_draft(client, student, codes=["CS101", "CS999"])
    resp = client.post(f"/api/enrollments/{draft['enrollment_id']}/submit", headers=student)
    assert resp.status_code == 400
    assert resp.json()["unavailable_courses"] == ["CS999"]


def test_submit_locks_the_draft(client, seed_users):
    record = submitted_enrollment(client)
    assert record["status"] == "pending_hod_approval"
    assert record["submitted_at"] is not None

    resp = client.put(
        f"/api/enrollments/{record['enrollment_id']}/draft",
        json={"course_codes": ["CS101"]},
        headers=auth_headers(client, "stu001"),
    )
    assert resp.status_code == 400


def test_two_stage_approval(client, seed_users):
    record = submitted_enrollment(client)
    enrollment_id = record["enrollment_id"]

    first = decide(client, "hod001", enrollment_id, "hod", "approve")
    assert first.status_code == 200
    assert first.json()["status"] == "pending_office_approval"
    assert first.json()["hod_decided_by"] == seed_users["hod"].user_id

    repeat = decide(client, "hod001", enrollment_id, "hod", "approve")
    assert repeat.status_code == 409
    assert repeat.json()["code"] == "stale_state"

    final = decide(client, "office001", enrollment_id, "office", "approve")
    assert final.status_code == 200
    assert final.json()["status"] == "approved"

    withdraw = client.post(f"/api/enrollments/{enrollment_id}/withdraw", headers=auth_headers(client, "stu001"))
    assert withdraw.status_code == 400


def test_hod_of_other_department_is_forbidden(client, seed_users):
    record = submitted_enrollment(client)
    resp = decide(client, "hod002", record["enrollment_id"], "hod", "approve")
    assert resp.status_code == 403


def test_office_cannot_skip_the_department_stage(client, seed_users):
    record = submitted_enrollment(client)
    resp = decide(client, "office001", record["enrollment_id"], "office", "approve")
    assert resp.status_code == 400


def test_rejection_is_terminal_and_keeps_reason(client, db, seed_users):
    record = submitted_enrollment(client)
    enrollment_id = record["enrollment_id"]

    rejected = decide(client, "hod001", enrollment_id, "hod", "reject", reason="conflict")
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["rejection_reason"] == "conflict"
    assert rejected.json()["rejected_stage"] == "hod"

    stored = db.query(Enrollment).filter(Enrollment.enrollment_id == enrollment_id).one()
    assert stored.rejection_reason == "conflict"

    again = decide(client, "stu001", enrollment_id, "hod", "approve")
    assert again.status_code == 400
    assert again.json()["code"] == "invalid_transition"


def test_reject_without_reason_is_refused(client, seed_users):
    record = submitted_enrollment(client)
    resp = decide(client, "hod001", record["enrollment_id"], "hod", "reject")
    assert resp.status_code == 400


def test_pending_queues(client, seed_users):
    record = submitted_enrollment(client)

    hod_queue = client.get("/api/enrollments/pending?stage=hod", headers=auth_headers(client, "hod001")).json()
    assert [r["enrollment_id"] for r in hod_queue] == [record["enrollment_id"]]

    other_queue = client.get("/api/enrollments/pending?stage=hod", headers=auth_headers(client, "hod002")).json()
    assert other_queue == []

    denied = client.get("/api/enrollments/pending?stage=office", headers=auth_headers(client, "hod001"))
    assert denied.status_code == 403

    decide(client, "hod001", record["enrollment_id"], "hod", "approve")
    office_queue = client.get("/api/enrollments/pending?stage=office", headers=auth_headers(client, "office001")).json()
    assert [r["enrollment_id"] for r in office_queue] == [record["enrollment_id"]]


def test_my_enrollments_and_visibility(client, seed_users):
    student = auth_headers(client, "stu001")
    draft = create_draft(client, student)
    mine = client.get("/api/enrollments/my", headers=student).json()
    assert [r["enrollment_id"] for r in mine] == [draft["enrollment_id"]]

    other = client.get(f"/api/enrollments/{draft['enrollment_id']}", headers=auth_headers(client, "stu002"))
    assert other.status_code == 403
