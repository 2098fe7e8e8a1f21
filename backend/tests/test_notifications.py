"""In-app notifications produced by workflow steps."""

from tests.conftest import activate_course, auth_headers, create_course, run_action


def test_submission_notifies_department_head(client, seed_users):
    author = auth_headers(client, "fac001")
    hod = auth_headers(client, "hod001")
    course = create_course(client, author)
    run_action(client, author, "courses", course["course_id"], "submit")

    notes = client.get("/api/notifications", headers=hod).json()
    assert len(notes) == 1
    assert notes[0]["noti_type"] == "approval_requested"
    assert notes[0]["link_url"] == f"/courses/{course['course_id']}"

    other_hod = client.get("/api/notifications", headers=auth_headers(client, "hod002")).json()
    assert other_hod == []


def test_rejection_notifies_authors_with_reason(client, seed_users):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)
    run_action(client, author, "courses", course["course_id"], "submit")
    client.post(
        f"/api/courses/{course['course_id']}/reject",
        json={"reason": "Credits do not match the syllabus"},
        headers=auth_headers(client, "hod001"),
    )

    notes = client.get("/api/notifications", headers=author).json()
    assert notes[0]["noti_type"] == "change_requested"
    assert notes[0]["message"] == "Credits do not match the syllabus"


def test_enrollment_rejection_notifies_student(client, seed_users):
    activate_course(client, code="CS101")
    student = auth_headers(client, "stu001")
    draft = client.post(
        "/api/enrollments/drafts",
        json={"academic_year": "2026-2027", "semester": 1, "course_codes": ["CS101"]},
        headers=student,
    ).json()
    client.post(f"/api/enrollments/{draft['enrollment_id']}/submit", headers=student)
    client.post(
        f"/api/enrollments/{draft['enrollment_id']}/decision",
        json={"stage": "hod", "action": "reject", "reason": "conflict"},
        headers=auth_headers(client, "hod001"),
    )

    notes = client.get("/api/notifications", headers=student).json()
    assert notes[0]["noti_type"] == "enrollment_decided"
    assert notes[0]["message"] == "conflict"


def test_mark_read_and_read_all(client, seed_users):
    author = auth_headers(client, "fac001")
    hod = auth_headers(client, "hod001")
    for code in ("CS101", "CS102"):
        course = create_course(client, author, code=code)
        run_action(client, author, "courses", course["course_id"], "submit")

    notes = client.get("/api/notifications", headers=hod).json()
    assert len(notes) == 2
    resp = client.patch(f"/api/notifications/{notes[0]['noti_id']}/read", headers=hod)
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True

    unread = client.get("/api/notifications?unread_only=true", headers=hod).json()
    assert len(unread) == 1

    client.post("/api/notifications/read-all", headers=hod)
    assert client.get("/api/notifications?unread_only=true", headers=hod).json() == []


def test_cannot_mark_someone_elses_notification(client, seed_users):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)
    run_action(client, author, "courses", course["course_id"], "submit")
    note = client.get("/api/notifications", headers=auth_headers(client, "hod001")).json()[0]

    resp = client.patch(f"/api/notifications/{note['noti_id']}/read", headers=author)
    assert resp.status_code == 404
