"""Lineage validation and fork planning."""

from types import SimpleNamespace

import pytest

from app.workflow.errors import Forbidden, InvalidTransition, LineageIntegrityError
from app.workflow.kinds import ActorRole
from app.workflow.lineage import latest_of, newer_than, plan_fork, validate_lineage


def version(number, status, latest=False, parent=None):
    return SimpleNamespace(
        entity_id=number,
        code="CS101",
        version=number,
        status=status,
        is_latest_version=latest,
        parent_id=parent,
    )


def test_newer_than_and_latest_of():
    rows = [version(1, "archived", parent=None), version(2, "active", latest=True, parent=1)]
    assert newer_than(rows, 1) == [rows[1]]
    assert latest_of(rows) is rows[1]
    assert latest_of([]) is None


def test_valid_lineage_passes():
    validate_lineage([
        version(1, "archived"),
        version(2, "disabled", parent=1),
        version(3, "active", latest=True, parent=2),
    ])


@pytest.mark.parametrize(
    "rows",
    [
        [version(1, "active", latest=True), version(2, "draft", latest=True, parent=1)],
        [version(1, "active", latest=True), version(2, "draft", parent=1)],
        [version(1, "active"), version(2, "draft", parent=1), version(3, "draft", latest=True, parent=1)],
        [version(1, "active"), version(2, "draft", latest=True, parent=99)],
    ],
    ids=["two-latest", "latest-not-highest", "branching", "foreign-parent"],
)
def test_broken_lineage_is_a_fault(rows):
    with pytest.raises(LineageIntegrityError):
        validate_lineage(rows)


SOURCE_VALUES = {
    "course_id": 1,
    "code": "CS101",
    "name": "Programming",
    "credits": 4,
    "version": 1,
    "status": "active",
    "parent_id": None,
    "is_latest_version": True,
    "created_by": 7,
    "approved_by": 9,
    "approved_at": "2026-01-01T00:00:00",
    "rejection_reason": "old",
    "created_at": "2026-01-01T00:00:00",
}


def test_plan_fork_copies_fields_except_blacklist():
    source = version(1, "active", latest=True)
    plan = plan_fork(source, SOURCE_VALUES, [source], {ActorRole.CREATOR}, 42, id_field="course_id").unwrap()
    assert plan.version == 2
    assert plan.fields == {
        "code": "CS101",
        "name": "Programming",
        "credits": 4,
        "version": 2,
        "status": "draft",
        "parent_id": 1,
        "is_latest_version": True,
        "created_by": 42,
        "updated_by": 42,
    }


def test_plan_fork_refuses_superseded_source():
    v1 = version(1, "active")
    v2 = version(2, "active", latest=True, parent=1)
    outcome = plan_fork(v1, SOURCE_VALUES, [v1, v2], {ActorRole.ADMIN}, 1, id_field="course_id")
    assert isinstance(outcome.error, InvalidTransition)


def test_plan_fork_resumes_from_active_version_below_retired_latest():
    v1 = version(1, "active")
    v2 = version(2, "archived", latest=True, parent=1)
    plan = plan_fork(v1, SOURCE_VALUES, [v1, v2], {ActorRole.CREATOR}, 42, id_field="course_id").unwrap()
    assert plan.source_id == 1
    assert plan.version == 3
    assert plan.fields["parent_id"] == 2
    assert plan.fields["name"] == "Programming"
    assert (plan.latest_id, plan.latest_status) == (2, "archived")
    validate_lineage([v1, v2, version(3, "draft", latest=True, parent=2)])


def test_plan_fork_resumes_only_from_highest_active_version():
    v1 = version(1, "active")
    v2 = version(2, "active", parent=1)
    v3 = version(3, "disabled", latest=True, parent=2)
    outcome = plan_fork(v1, SOURCE_VALUES, [v1, v2, v3], {ActorRole.CREATOR}, 1, id_field="course_id")
    assert isinstance(outcome.error, InvalidTransition)
    assert plan_fork(v2, SOURCE_VALUES, [v1, v2, v3], {ActorRole.CREATOR}, 1, id_field="course_id").ok


def test_plan_fork_refuses_source_status_outside_allowed_list():
    source = version(1, "draft", latest=True)
    outcome = plan_fork(source, SOURCE_VALUES, [source], {ActorRole.CREATOR}, 1, id_field="course_id")
    assert isinstance(outcome.error, InvalidTransition)


def test_plan_fork_refuses_when_live_version_exists():
    v1 = version(1, "approved")
    v2 = version(2, "active", latest=True, parent=1)
    outcome = plan_fork(v2, SOURCE_VALUES, [v1, v2], {ActorRole.CREATOR}, 1, id_field="course_id")
    assert isinstance(outcome.error, InvalidTransition)


def test_plan_fork_requires_author_or_admin():
    source = version(1, "active", latest=True)
    outcome = plan_fork(source, SOURCE_VALUES, [source], {ActorRole.DEPARTMENT_HEAD}, 1, id_field="course_id")
    assert isinstance(outcome.error, Forbidden)
