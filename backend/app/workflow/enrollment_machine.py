"""Two-stage enrollment approval state machine.

Every function here is a decision: it reads the record and the actor and
returns an ``Outcome`` holding the status change to persist. Writing the change
with a compare-and-swap on ``expected_status`` is the caller's job.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.workflow import statuses as st
from app.workflow.errors import Forbidden, InvalidTransition, StaleState
from app.workflow.outcome import Outcome

APPROVE = "approve"
REJECT = "reject"
DECISIONS = (APPROVE, REJECT)

# Position of each in-flight status along the pipeline.
_PIPELINE = (st.ENROLLMENT_DRAFT, st.PENDING_HOD_APPROVAL, st.PENDING_OFFICE_APPROVAL, st.ENROLLMENT_APPROVED)


@dataclass(frozen=True)
class Stage:
    name: str
    label: str
    expects: str
    approves_to: str
    decided_by_field: str
    decided_at_field: str

    def may_decide(self, actor, record) -> bool:
        if self.name == "hod":
            return bool(actor.is_head_of_department) and actor.department_code == record.department_code
        return actor.role == "office"


STAGES: Dict[str, Stage] = {
    "hod": Stage(
        name="hod",
        label="department head",
        expects=st.PENDING_HOD_APPROVAL,
        approves_to=st.PENDING_OFFICE_APPROVAL,
        decided_by_field="hod_decided_by",
        decided_at_field="hod_decided_at",
    ),
    "office": Stage(
        name="office",
        label="office",
        expects=st.PENDING_OFFICE_APPROVAL,
        approves_to=st.ENROLLMENT_APPROVED,
        decided_by_field="office_decided_by",
        decided_at_field="office_decided_at",
    ),
}


@dataclass(frozen=True)
class EnrollmentChange:
    action: str
    expected_status: str
    new_status: str
    fields: Dict[str, Any] = field(default_factory=dict)


def normalize_codes(codes: Iterable[str]) -> List[str]:
    """Upper-case, drop blanks and duplicates, keep first-seen order."""
    seen: Dict[str, None] = {}
    for code in codes or ():
        cleaned = (code or "").strip().upper()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _not_owner(record, actor_id, action: str) -> Optional[Forbidden]:
    if record.student_id != actor_id:
        return Forbidden(
            f"Only the student who owns this enrollment can {action} it.",
            current_status=record.status,
            action=action,
        )
    return None


def save_draft(record, actor_id) -> Outcome:
    if record.status != st.ENROLLMENT_DRAFT:
        return Outcome.failure(InvalidTransition(
            f"Only draft enrollments can be edited; this one is {record.status}.",
            current_status=record.status,
            action="save",
        ))
    denied = _not_owner(record, actor_id, "save")
    if denied:
        return Outcome.failure(denied)
    return Outcome.success(EnrollmentChange(
        action="save",
        expected_status=st.ENROLLMENT_DRAFT,
        new_status=st.ENROLLMENT_DRAFT,
    ))


def submit(record, actor_id, active_codes: Iterable[str], now: datetime) -> Outcome:
    """Lock a draft and send it to the department head.

    ``active_codes`` is the subset of the record's codes that currently have an
    active course version.
    """
    if record.status != st.ENROLLMENT_DRAFT:
        return Outcome.failure(InvalidTransition(
            f"Cannot submit an enrollment in status '{record.status}'.",
            current_status=record.status,
            action="submit",
        ))
    denied = _not_owner(record, actor_id, "submit")
    if denied:
        return Outcome.failure(denied)

    codes = list(record.course_codes or [])
    if not codes:
        return Outcome.failure(InvalidTransition(
            "Select at least one course before submitting.",
            current_status=record.status,
            action="submit",
        ))
    active = set(active_codes)
    missing = [code for code in codes if code not in active]
    if missing:
        return Outcome.failure(InvalidTransition(
            f"These courses are not open for enrollment: {', '.join(missing)}.",
            current_status=record.status,
            action="submit",
            unavailable_courses=missing,
        ))

    return Outcome.success(EnrollmentChange(
        action="submit",
        expected_status=st.ENROLLMENT_DRAFT,
        new_status=st.PENDING_HOD_APPROVAL,
        fields={
            "submitted_at": now,
            "rejection_reason": None,
            "rejected_stage": None,
        },
    ))


def decide(record, stage_name: str, action: str, actor, reason: Optional[str], now: datetime) -> Outcome:
    """Approve or reject ``record`` at ``stage_name`` on behalf of ``actor``.

    A record that has already left the stage yields ``StaleState`` so that a
    second approver acting on an outdated view learns to reload.
    """
    stage = STAGES.get(stage_name)
    if stage is None:
        return Outcome.failure(InvalidTransition(
            f"Unknown approval stage '{stage_name}'.",
            current_status=record.status,
            action=action,
        ))
    if action not in DECISIONS:
        return Outcome.failure(InvalidTransition(
            f"Unknown decision '{action}'. Use approve or reject.",
            current_status=record.status,
            action=action,
        ))

    current = record.status
    if current in st.TERMINAL_ENROLLMENT_STATUSES:
        return Outcome.failure(InvalidTransition(
            f"Enrollment is already {current}; no further decisions are possible.",
            current_status=current,
            action=action,
        ))
    if current != stage.expects:
        if _PIPELINE.index(current) > _PIPELINE.index(stage.expects):
            return Outcome.failure(StaleState(
                f"Enrollment has already moved past the {stage.label} stage (now {current}).",
                current_status=current,
                expected_status=stage.expects,
            ))
        return Outcome.failure(InvalidTransition(
            f"Enrollment has not reached the {stage.label} stage (now {current}).",
            current_status=current,
            action=action,
        ))
    if not stage.may_decide(actor, record):
        return Outcome.failure(Forbidden(
            f"Only the {stage.label} may decide at this stage.",
            current_status=current,
            action=action,
        ))

    fields: Dict[str, Any] = {
        stage.decided_by_field: actor.user_id,
        stage.decided_at_field: now,
    }
    if action == APPROVE:
        new_status = stage.approves_to
    else:
        if reason is None or not reason.strip():
            return Outcome.failure(InvalidTransition(
                "A reason is required to reject an enrollment.",
                current_status=current,
                action=action,
            ))
        new_status = st.REJECTED
        fields.update(rejection_reason=reason, rejected_stage=stage.name)

    return Outcome.success(EnrollmentChange(
        action=action,
        expected_status=current,
        new_status=new_status,
        fields=fields,
    ))


def withdraw(record, actor_id, now: datetime) -> Outcome:
    if record.status not in st.WITHDRAWABLE_STATUSES:
        return Outcome.failure(InvalidTransition(
            f"Cannot withdraw an enrollment in status '{record.status}'.",
            current_status=record.status,
            action="withdraw",
        ))
    denied = _not_owner(record, actor_id, "withdraw")
    if denied:
        return Outcome.failure(denied)
    return Outcome.success(EnrollmentChange(
        action="withdraw",
        expected_status=record.status,
        new_status=st.WITHDRAWN,
        fields={"withdrawn_at": now},
    ))
