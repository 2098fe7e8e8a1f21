"""Course authoring, workflow actions and the shared edit guard over HTTP."""

from app.models.audit_log import AuditLog
from app.models.course import Course
from tests.conftest import activate_course, auth_headers, create_course, run_action

DENIAL_FIELDS = {
    "error", "reason", "canEdit", "courseStatus", "isLatestVersion", "version", "newerVersionsCount",
}


def test_create_course_starts_as_latest_draft(client, seed_users):
    course = create_course(client, auth_headers(client, "fac001"), code="cs101", prerequisites=["ma101", "MA101"])
    assert course["code"] == "CS101"
    assert course["version"] == 1
    assert course["status"] == "draft"
    assert course["is_latest_version"] is True
    assert course["parent_id"] is None
    assert course["department_code"] == "CSE"
    assert course["prerequisites"] == ["MA101"]


def test_duplicate_code_is_rejected(client, seed_users):
    headers = auth_headers(client, "fac001")
    create_course(client, headers)
    resp = client.post("/api/courses", json={"code": "CS101", "name": "Again", "credits": 3, "semester": 1}, headers=headers)
    assert resp.status_code == 400


def test_students_cannot_create_courses(client, seed_users):
    resp = client.post(
        "/api/courses",
        json={"code": "CS101", "name": "Nope", "credits": 3, "semester": 1},
        headers=auth_headers(client, "stu001"),
    )
    assert resp.status_code == 403


def test_full_approval_flow(client, db, seed_users):
    author = auth_headers(client, "fac001")
    hod = auth_headers(client, "hod001")
    course = create_course(client, author)
    course_id = course["course_id"]

    submitted = run_action(client, author, "courses", course_id, "submit")
    assert submitted["status"] == "pending_approval"
    assert submitted["submitted_at"] is not None

    approved = run_action(client, hod, "courses", course_id, "approve")
    assert approved["status"] == "approved"
    assert approved["approved_by"] == seed_users["hod"].user_id

    active = run_action(client, author, "courses", course_id, "publish")
    assert active["status"] == "active"

    actions = [row.action for row in db.query(AuditLog).filter(AuditLog.entity_id == course_id).order_by(AuditLog.audit_id)]
    assert actions == ["create", "submit", "approve", "publish"]


def test_reject_returns_to_draft_with_reason(client, seed_users):
    author = auth_headers(client, "fac001")
    hod = auth_headers(client, "hod001")
    course = create_course(client, author)
    run_action(client, author, "courses", course["course_id"], "submit")

    resp = client.post(
        f"/api/courses/{course['course_id']}/reject",
        json={"reason": "Assessment plan is missing"},
        headers=hod,
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "draft"
    assert resp.json()["rejection_reason"] == "Assessment plan is missing"

    resubmitted = run_action(client, author, "courses", course["course_id"], "submit")
    assert resubmitted["rejection_reason"] is None


def test_illegal_action_and_wrong_role(client, seed_users):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)

    invalid = client.post(f"/api/courses/{course['course_id']}/approve", headers=auth_headers(client, "hod001"))
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "invalid_transition"
    assert invalid.json()["current_status"] == "draft"

    run_action(client, author, "courses", course["course_id"], "submit")
    forbidden = client.post(f"/api/courses/{course['course_id']}/approve", headers=auth_headers(client, "hod002"))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden"


def test_update_draft_in_place(client, seed_users):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)
    resp = client.put(f"/api/courses/{course['course_id']}", json={"name": "Renamed", "credits": 4}, headers=author)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Renamed"
    assert resp.json()["credits"] == 4


def test_update_requires_author(client, seed_users):
    course = create_course(client, auth_headers(client, "fac001"))
    resp = client.put(
        f"/api/courses/{course['course_id']}",
        json={"name": "Hijacked"},
        headers=auth_headers(client, "fac003"),
    )
    assert resp.status_code == 403


def test_update_of_active_version_requires_fork(client, seed_users):
    active = activate_course(client)
    resp = client.put(
        f"/api/courses/{active['course_id']}",
        json={"name": "Direct edit"},
        headers=auth_headers(client, "fac001"),
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_transition"


def test_every_edit_entry_point_uses_the_guard(client, seed_users):
    author = auth_headers(client, "fac001")
    v1 = activate_course(client)
    fork = client.post(f"/api/courses/{v1['course_id']}/versions", headers=author)
    assert fork.status_code == 201

    responses = [
        client.get(f"/api/courses/{v1['course_id']}?edit=true", headers=author),
        client.get(f"/api/courses/{v1['course_id']}/edit", headers=author),
        client.put(f"/api/courses/{v1['course_id']}", json={"name": "Stale edit"}, headers=author),
    ]
    for resp in responses:
        assert resp.status_code == 403
        body = resp.json()
        assert DENIAL_FIELDS <= set(body)
        assert body["canEdit"] is False
        assert body["courseStatus"] == "active"
        assert body["isLatestVersion"] is False
        assert body["version"] == 1
        assert body["newerVersionsCount"] == 1

    plain = client.get(f"/api/courses/{v1['course_id']}", headers=author)
    assert plain.status_code == 200


def test_can_edit_endpoint_reports_decision(client, seed_users):
    author = auth_headers(client, "fac001")
    v1 = activate_course(client)
    resp = client.get(f"/api/courses/{v1['course_id']}/can-edit", headers=author)
    assert resp.status_code == 200
    assert resp.json()["canEdit"] is True
    assert resp.json()["newerVersionsCount"] == 0

    client.post(f"/api/courses/{v1['course_id']}/versions", headers=author)
    blocked = client.get(f"/api/courses/{v1['course_id']}/can-edit", headers=author).json()
    assert blocked["canEdit"] is False
    assert blocked["newerVersions"][0]["version"] == 2
    assert "error" not in blocked


def test_delete_draft_only(client, db, seed_users):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)
    resp = client.delete(f"/api/courses/{course['course_id']}", headers=author)
    assert resp.status_code == 200
    assert db.query(Course).count() == 0

    active = activate_course(client, code="CS200")
    blocked = client.delete(f"/api/courses/{active['course_id']}", headers=author)
    assert blocked.status_code == 400


def test_disable_and_archive(client, seed_users):
    active = activate_course(client)
    disabled = run_action(client, auth_headers(client, "hod001"), "courses", active["course_id"], "disable")
    assert disabled["status"] == "disabled"
    archived = run_action(client, auth_headers(client, "admin001"), "courses", active["course_id"], "archive")
    assert archived["status"] == "archived"


def test_list_courses_filters(client, seed_users):
    author = auth_headers(client, "fac001")
    create_course(client, author, code="CS101")
    create_course(client, author, code="CS102", semester=2)
    resp = client.get("/api/courses?semester=2", headers=author)
    assert [c["code"] for c in resp.json()] == ["CS102"]
    resp = client.get("/api/courses?search=cs10", headers=author)
    assert len(resp.json()) == 2
