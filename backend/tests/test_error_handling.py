"""Faults and unavailability are reported without leaking internals."""

from sqlalchemy.exc import OperationalError

from app.models.course import Course
from app.services import lineage_store
from tests.conftest import activate_course, auth_headers, create_course


def test_broken_lineage_is_reported_as_opaque_fault(client, db, seed_users):
    author = auth_headers(client, "fac001")
    v1 = activate_course(client)
    client.post(f"/api/courses/{v1['course_id']}/versions", headers=author)
    db.query(Course).filter(Course.course_id == v1["course_id"]).update({"is_latest_version": True})
    db.commit()

    resp = client.get(f"/api/courses/{v1['course_id']}/can-edit", headers=author)
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal server error"
    assert len(body["correlation_id"]) == 32
    assert "latest" not in str(body)


def test_database_timeout_surfaces_as_retryable_unavailable(client, seed_users, monkeypatch):
    author = auth_headers(client, "fac001")
    course = create_course(client, author)

    def timed_out(self, entity_id, expected, values):
        raise OperationalError("UPDATE courses", {}, Exception("database is locked"))

    monkeypatch.setattr(lineage_store.LineageStore, "_guarded_update", timed_out)
    resp = client.post(f"/api/courses/{course['course_id']}/submit", headers=author)
    assert resp.status_code == 503
    assert resp.json()["code"] == "unavailable"
    assert resp.headers["Retry-After"] == "5"

    monkeypatch.undo()
    still_draft = client.get(f"/api/courses/{course['course_id']}", headers=author).json()
    assert still_draft["status"] == "draft"


def test_not_found(client, seed_users):
    resp = client.get("/api/courses/999", headers=auth_headers(client, "fac001"))
    assert resp.status_code == 404
