"""Two-stage enrollment approval pipeline."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.enrollment import Enrollment
from app.models.user import User
from app.services import message_service, notification_service
from app.services.audit_service import AuditRecorder, snapshot
from app.services.course_service import active_course_codes
from app.services.lineage_store import guarded_read, guarded_transaction
from app.utils.permissions import is_admin, is_department_head, is_office, is_student
from app.workflow import enrollment_machine as machine
from app.workflow import statuses as st
from app.workflow.errors import DuplicateEnrollment, Forbidden, StaleState, WorkflowError

logger = logging.getLogger(__name__)

ENTITY_TYPE = "enrollment"


def _now() -> datetime:
    return datetime.utcnow()


class EnrollmentStore:
    """Enrollment rows with compare-and-swap status writes."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        with guarded_read(self.db):
            return self.db.query(Enrollment).filter(Enrollment.enrollment_id == enrollment_id).first()

    def find_live(self, student_id: int, academic_year: str, semester: int) -> Optional[Enrollment]:
        with guarded_read(self.db):
            return (
                self.db.query(Enrollment)
                .filter(
                    Enrollment.student_id == student_id,
                    Enrollment.academic_year == academic_year,
                    Enrollment.semester == semester,
                    Enrollment.status.notin_((st.REJECTED, st.WITHDRAWN)),
                )
                .first()
            )

    def compare_and_swap_status(self, enrollment_id: int, expected_status: str, new_status: str, fields: Dict[str, Any] = None) -> Enrollment:
        values = dict(fields or {})
        values["status"] = new_status
        updated = (
            self.db.query(Enrollment)
            .filter(Enrollment.enrollment_id == enrollment_id, Enrollment.status == expected_status)
            .update(values, synchronize_session="fetch")
        )
        if updated == 0:
            raise StaleState(
                f"Enrollment {enrollment_id} is no longer {expected_status}; reload and retry.",
                enrollment_id=enrollment_id,
                expected_status=expected_status,
            )
        return self.find_by_id(enrollment_id)

    def transaction(self, conflict: Type[WorkflowError] = StaleState, conflict_reason: str = None):
        return guarded_transaction(self.db, conflict=conflict, conflict_reason=conflict_reason)


def _raise_if_failed(outcome, enrollment_id, action: str, current_user: User):
    if not outcome.ok:
        logger.info(
            "[enrollment] %s on #%s denied for user %s: %s",
            action, enrollment_id, current_user.user_id, outcome.error.reason,
        )
        raise outcome.error
    return outcome.value


def get_enrollment(db: Session, enrollment_id: int, current_user: User) -> Enrollment:
    record = EnrollmentStore(db).find_by_id(enrollment_id)
    if not record:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    if not (
        record.student_id == current_user.user_id
        or is_department_head(current_user, record.department_code)
        or is_office(current_user)
        or is_admin(current_user)
    ):
        raise HTTPException(status_code=403, detail="You cannot view this enrollment.")
    return record


def list_my_enrollments(db: Session, current_user: User) -> List[Enrollment]:
    return (
        db.query(Enrollment)
        .filter(Enrollment.student_id == current_user.user_id)
        .order_by(Enrollment.academic_year.desc(), Enrollment.semester.desc(), Enrollment.enrollment_id.desc())
        .all()
    )


def list_pending(db: Session, stage: str, current_user: User) -> List[Enrollment]:
    stage_config = machine.STAGES.get(stage)
    if stage_config is None:
        raise HTTPException(status_code=400, detail=f"Unknown approval stage '{stage}'.")
    q = db.query(Enrollment).filter(Enrollment.status == stage_config.expects)
    if stage == "hod":
        if not is_department_head(current_user):
            raise HTTPException(status_code=403, detail="Only department heads can review this queue.")
        q = q.filter(Enrollment.department_code == current_user.department_code)
    elif not (is_office(current_user) or is_admin(current_user)):
        raise HTTPException(status_code=403, detail="Only office staff can review this queue.")
    return q.order_by(Enrollment.submitted_at.asc(), Enrollment.enrollment_id.asc()).all()


def create_draft(db: Session, data: Dict[str, Any], current_user: User) -> Enrollment:
    if not is_student(current_user):
        raise Forbidden("Only students can create enrollments.", action="create")
    if not current_user.department_code:
        raise HTTPException(status_code=400, detail="Student has no department assigned.")

    store = EnrollmentStore(db)
    academic_year = data["academic_year"]
    semester = data["semester"]
    existing = store.find_live(current_user.user_id, academic_year, semester)
    if existing:
        raise DuplicateEnrollment(
            f"You already have a {existing.status} enrollment for {academic_year} semester {semester}.",
            enrollment_id=existing.enrollment_id,
        )

    with store.transaction(
        conflict=DuplicateEnrollment,
        conflict_reason="An active enrollment already exists for this academic period.",
    ):
        record = Enrollment(
            student_id=current_user.user_id,
            department_code=current_user.department_code,
            academic_year=academic_year,
            semester=semester,
            course_codes=machine.normalize_codes(data.get("course_codes") or []),
            status=st.ENROLLMENT_DRAFT,
        )
        db.add(record)
        db.flush()
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="create",
            entity_type=ENTITY_TYPE,
            entity_id=record.enrollment_id,
            after=snapshot(record),
        )
    db.refresh(record)
    logger.info("[enrollment] draft #%s created by student %s", record.enrollment_id, current_user.user_id)
    return record


def save_draft(db: Session, enrollment_id: int, course_codes: List[str], current_user: User) -> Enrollment:
    store = EnrollmentStore(db)
    record = get_enrollment(db, enrollment_id, current_user)
    change = _raise_if_failed(machine.save_draft(record, current_user.user_id), enrollment_id, "save", current_user)

    before = snapshot(record)
    with store.transaction():
        updated = store.compare_and_swap_status(
            record.enrollment_id,
            change.expected_status,
            change.new_status,
            {"course_codes": machine.normalize_codes(course_codes)},
        )
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="save",
            entity_type=ENTITY_TYPE,
            entity_id=record.enrollment_id,
            before=before,
            after=snapshot(updated),
        )
    db.refresh(updated)
    return updated


def _apply(db: Session, record: Enrollment, change, current_user: User, *, note: Optional[str] = None) -> Enrollment:
    store = EnrollmentStore(db)
    before = snapshot(record)
    with store.transaction():
        updated = store.compare_and_swap_status(
            record.enrollment_id, change.expected_status, change.new_status, change.fields
        )
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action=change.action,
            entity_type=ENTITY_TYPE,
            entity_id=record.enrollment_id,
            before=before,
            after=snapshot(updated),
            description=f"Enrollment {change.expected_status} -> {change.new_status}",
        )
        if note:
            message_service.add_message(
                db,
                entity_type=ENTITY_TYPE,
                entity_id=record.enrollment_id,
                sender_id=current_user.user_id,
                message=note,
            )
    db.refresh(updated)
    logger.info(
        "[enrollment] #%s %s: %s -> %s by user %s",
        record.enrollment_id, change.action, change.expected_status, change.new_status, current_user.user_id,
    )
    return updated


def submit(db: Session, enrollment_id: int, current_user: User) -> Enrollment:
    record = get_enrollment(db, enrollment_id, current_user)
    codes = list(record.course_codes or [])
    outcome = machine.submit(record, current_user.user_id, active_course_codes(db, codes), _now())
    change = _raise_if_failed(outcome, enrollment_id, "submit", current_user)
    updated = _apply(db, record, change, current_user)
    notification_service.notify_users(
        db,
        notification_service.department_head_ids(db, updated.department_code),
        "approval_requested",
        "Enrollment waiting for department approval",
        f"{current_user.name}: {', '.join(codes)} ({updated.academic_year} semester {updated.semester})",
        f"/enrollments/{updated.enrollment_id}",
    )
    return updated


def decide(
    db: Session,
    enrollment_id: int,
    stage: str,
    action: str,
    current_user: User,
    reason: Optional[str] = None,
) -> Enrollment:
    record = EnrollmentStore(db).find_by_id(enrollment_id)
    if not record:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    outcome = machine.decide(record, stage, action, current_user, reason, _now())
    change = _raise_if_failed(outcome, enrollment_id, f"{stage} {action}", current_user)
    updated = _apply(db, record, change, current_user, note=reason)

    link = f"/enrollments/{updated.enrollment_id}"
    if updated.status == st.REJECTED:
        notification_service.notify_users(
            db, [updated.student_id], "enrollment_decided", "Your enrollment was rejected", reason, link
        )
    elif updated.status == st.PENDING_OFFICE_APPROVAL:
        notification_service.notify_users(
            db,
            notification_service.office_user_ids(db),
            "approval_requested",
            "Enrollment waiting for office approval",
            None,
            link,
        )
    elif updated.status == st.ENROLLMENT_APPROVED:
        notification_service.notify_users(
            db, [updated.student_id], "enrollment_decided", "Your enrollment was approved", None, link
        )
    return updated


def withdraw(db: Session, enrollment_id: int, current_user: User) -> Enrollment:
    record = get_enrollment(db, enrollment_id, current_user)
    change = _raise_if_failed(machine.withdraw(record, current_user.user_id, _now()), enrollment_id, "withdraw", current_user)
    return _apply(db, record, change, current_user)
