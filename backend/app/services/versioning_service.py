"""Versioning and approval workflow shared by courses and degrees.

Every mutation of a versioned entity goes through this module: the edit guard,
the state machine, the lineage store write path and the audit recorder, in
that order. Notifications are sent only after the change is committed.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.user import User
from app.services import collaborator_service, message_service, notification_service
from app.services.audit_service import AuditRecorder, snapshot
from app.services.lineage_store import LineageStore, RowWrite, column_values
from app.utils.permissions import actor_roles_for, is_admin, is_faculty
from app.workflow import statuses as st
from app.workflow.eligibility import EditDecision, can_edit
from app.workflow.errors import EditBlocked, Forbidden, InvalidTransition
from app.workflow.kinds import AUTHORS, ActorRole, EntityKind, SideEffect
from app.workflow.lineage import plan_fork
from app.workflow.transitions import transition

logger = logging.getLogger(__name__)

# Actions that shape the future of a lineage and must respect the edit guard.
GUARDED_ACTIONS = ("submit", "approve", "reject", "publish", "activate")

EDIT_ROLES = AUTHORS | {ActorRole.ADMIN}


def _now() -> datetime:
    return datetime.utcnow()


def get_entity(db: Session, kind: EntityKind, entity_id: int):
    entity = LineageStore(db, kind).find_by_id(entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found")
    return entity


def actor_roles(db: Session, kind: EntityKind, entity, user: User):
    return actor_roles_for(entity, user, collaborator_service.collaborator_ids(db, kind.name, entity.entity_id))


def list_entities(
    db: Session,
    kind: EntityKind,
    *,
    status: Optional[str] = None,
    department_code: Optional[str] = None,
    latest_only: bool = True,
    search: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> List:
    model = LineageStore(db, kind).model
    q = db.query(model)
    if latest_only:
        q = q.filter(model.is_latest_version == True)
    if status:
        q = q.filter(model.status == status)
    if department_code:
        q = q.filter(model.department_code == department_code)
    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter((model.code.ilike(pattern)) | (model.name.ilike(pattern)))
    for column, value in (filters or {}).items():
        if value is not None:
            q = q.filter(getattr(model, column) == value)
    return q.order_by(model.code.asc(), model.version.desc()).all()


def list_versions(db: Session, kind: EntityKind, entity_id: int) -> List:
    entity = get_entity(db, kind, entity_id)
    return LineageStore(db, kind).lineage_of(entity)


# edit guard

def check_edit(db: Session, kind: EntityKind, entity) -> EditDecision:
    lineage = LineageStore(db, kind).lineage_of(entity)
    return can_edit(entity, lineage, label=kind.name)


def ensure_editable(db: Session, kind: EntityKind, entity) -> EditDecision:
    """The one edit-eligibility guard used by every mutation entry point."""
    decision = check_edit(db, kind, entity)
    if not decision.allowed:
        logger.info(
            "[workflow] edit blocked on %s#%s v%s (%s): %d blocking version(s)",
            kind.name, entity.entity_id, entity.version, entity.status, len(decision.blocking_versions),
        )
        raise EditBlocked(decision, label=kind.name)
    return decision


# create / update

def create_entity(db: Session, kind: EntityKind, data: Dict[str, Any], current_user: User):
    if not (is_faculty(current_user) or is_admin(current_user)):
        raise HTTPException(status_code=403, detail=f"Only faculty or admins can create a {kind.name}.")
    store = LineageStore(db, kind)
    values = dict(data)
    values["code"] = values["code"].strip().upper()
    values["department_code"] = (values.get("department_code") or current_user.department_code or "").upper()
    if not values["department_code"]:
        raise HTTPException(status_code=400, detail="department_code is required.")
    if store.find_by_base_code(values["code"]):
        raise HTTPException(status_code=400, detail=f"{kind.label} code {values['code']} already exists.")

    values.update(
        version=1,
        status=st.DRAFT,
        is_latest_version=True,
        parent_id=None,
        created_by=current_user.user_id,
        updated_by=current_user.user_id,
    )
    with store.transaction():
        entity = store.atomic_update([RowWrite(entity_id=None, fields=values)])[0]
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="create",
            entity_type=kind.name,
            entity_id=entity.entity_id,
            after=snapshot(entity),
            description=f"{kind.label} {entity.code} v1 created",
        )
    db.refresh(entity)
    logger.info("[workflow] %s %s v1 created by user %s", kind.name, entity.code, current_user.user_id)
    return entity


def update_entity(db: Session, kind: EntityKind, entity_id: int, data: Dict[str, Any], current_user: User):
    entity = get_entity(db, kind, entity_id)
    ensure_editable(db, kind, entity)
    if entity.status != st.DRAFT:
        raise InvalidTransition(
            f"Only draft versions can be edited in place; this {kind.name} is {entity.status}. "
            "Create a new version to change it.",
            current_status=entity.status,
            action="edit",
        )
    if not actor_roles(db, kind, entity, current_user) & EDIT_ROLES:
        raise Forbidden(
            f"Only authors of this {kind.name} or an admin can edit it.",
            current_status=entity.status,
            action="edit",
        )

    store = LineageStore(db, kind)
    before = snapshot(entity)
    with store.transaction():
        for key, value in data.items():
            setattr(entity, key, value)
        entity.updated_by = current_user.user_id
        db.flush()
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="update",
            entity_type=kind.name,
            entity_id=entity.entity_id,
            before=before,
            after=snapshot(entity),
        )
    db.refresh(entity)
    return entity


# transitions

def _transition_fields(result, entity, current_user: User, now: datetime) -> Dict[str, Any]:
    fields: Dict[str, Any] = {"updated_by": current_user.user_id}
    effects = result.side_effects
    if SideEffect.STAMP_SUBMISSION in effects:
        fields["submitted_at"] = now
    if SideEffect.CLEAR_REJECTION_REASON in effects:
        fields["rejection_reason"] = None
    if SideEffect.RECORD_APPROVAL in effects:
        fields["approved_by"] = current_user.user_id
        fields["approved_at"] = now
    if SideEffect.STORE_REJECTION_REASON in effects:
        fields["rejection_reason"] = result.reason
    return fields


def _author_ids(db: Session, kind: EntityKind, entity) -> List[int]:
    return [entity.created_by, *collaborator_service.collaborator_ids(db, kind.name, entity.entity_id)]


def _send_notifications(db: Session, kind: EntityKind, entity, result, current_user: User) -> None:
    link = f"/{kind.name}s/{entity.entity_id}"
    label = f"{kind.label} {entity.code} v{entity.version}"
    if SideEffect.NOTIFY_APPROVERS in result.side_effects:
        notification_service.notify_users(
            db,
            notification_service.department_head_ids(db, entity.department_code),
            "approval_requested",
            f"{label} is waiting for approval",
            f"Submitted by {current_user.name}.",
            link,
            exclude_user_id=current_user.user_id,
        )
    if SideEffect.NOTIFY_AUTHORS in result.side_effects:
        if result.new_status == st.APPROVED:
            title, message = f"{label} was approved", None
        else:
            title, message = f"{label} needs changes", result.reason
        notification_service.notify_users(
            db,
            _author_ids(db, kind, entity),
            "change_requested" if result.action == "reject" else "approved",
            title,
            message,
            link,
            exclude_user_id=current_user.user_id,
        )


def apply_transition(
    db: Session,
    kind: EntityKind,
    entity_id: int,
    action: str,
    current_user: User,
    *,
    reason: Optional[str] = None,
    message: Optional[str] = None,
):
    """Run ``action`` on an entity and persist the result.

    Returns the updated entity, or None when the action removed it.
    """
    entity = get_entity(db, kind, entity_id)
    if action in GUARDED_ACTIONS:
        ensure_editable(db, kind, entity)

    now = _now()
    outcome = transition(
        entity,
        action,
        actor_roles(db, kind, entity, current_user),
        reason=reason,
        now=now,
        kind=kind,
    )
    if not outcome.ok:
        logger.info(
            "[workflow] %s on %s#%s denied for user %s: %s",
            action, kind.name, entity_id, current_user.user_id, outcome.error.reason,
        )
        raise outcome.error
    result = outcome.value

    if SideEffect.REMOVE_ENTITY in result.side_effects:
        _remove(db, kind, entity, current_user)
        return None

    store = LineageStore(db, kind)
    recorder = AuditRecorder(db)
    before = snapshot(entity)
    superseded = []
    if SideEffect.ARCHIVE_SUPERSEDED in result.side_effects:
        superseded = [
            row for row in store.lineage_of(entity)
            if row.entity_id != entity.entity_id and row.status == st.ACTIVE
        ]

    with store.transaction():
        updated = store.compare_and_swap_status(
            entity.entity_id,
            result.previous_status,
            result.new_status,
            _transition_fields(result, entity, current_user, now),
        )
        recorder.record(
            actor_id=current_user.user_id,
            action=action,
            entity_type=kind.name,
            entity_id=entity.entity_id,
            before=before,
            after=snapshot(updated),
            context={"reason": result.reason} if result.reason else None,
            description=f"{kind.label} {entity.code} v{entity.version}: {result.previous_status} -> {result.new_status}",
        )
        for row in superseded:
            row_before = snapshot(row)
            archived = store.compare_and_swap_status(
                row.entity_id, st.ACTIVE, st.ARCHIVED, {"updated_by": current_user.user_id}
            )
            recorder.record(
                actor_id=current_user.user_id,
                action="archive",
                entity_type=kind.name,
                entity_id=row.entity_id,
                before=row_before,
                after=snapshot(archived),
                context={"superseded_by": entity.entity_id},
                description=f"Superseded by v{entity.version}",
            )
        note = message or result.reason
        if note:
            message_service.add_message(
                db,
                entity_type=kind.name,
                entity_id=entity.entity_id,
                sender_id=current_user.user_id,
                message=note,
            )

    logger.info(
        "[workflow] %s %s v%s %s: %s -> %s by user %s",
        kind.name, entity.code, entity.version, action,
        result.previous_status, result.new_status, current_user.user_id,
    )
    db.refresh(updated)
    _send_notifications(db, kind, updated, result, current_user)
    return updated


def _remove(db: Session, kind: EntityKind, entity, current_user: User) -> None:
    store = LineageStore(db, kind)
    entity_id, code, version, parent_id = entity.entity_id, entity.code, entity.version, entity.parent_id
    before = snapshot(entity)
    with store.transaction():
        collaborator_service.delete_for_entity(db, kind.name, entity_id)
        store.delete_if_status(entity_id, st.DRAFT)
        if parent_id is not None:
            store.atomic_update([
                RowWrite(
                    entity_id=parent_id,
                    fields={"is_latest_version": True},
                    expected={"is_latest_version": False},
                )
            ])
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="delete",
            entity_type=kind.name,
            entity_id=entity_id,
            before=before,
            context={"restored_latest_id": parent_id} if parent_id is not None else None,
            description=f"{kind.label} {code} v{version} draft deleted",
        )
    logger.info("[workflow] %s %s v%s deleted by user %s", kind.name, code, version, current_user.user_id)


# forking

def fork(db: Session, kind: EntityKind, entity_id: int, current_user: User):
    """Create the next draft version of a lineage from ``entity_id``."""
    source = get_entity(db, kind, entity_id)
    ensure_editable(db, kind, source)

    store = LineageStore(db, kind)
    lineage = store.lineage_of(source)
    outcome = plan_fork(
        source,
        column_values(source),
        lineage,
        actor_roles(db, kind, source, current_user),
        current_user.user_id,
        id_field=store.model.__id_field__,
        kind=kind,
    )
    if not outcome.ok:
        logger.info(
            "[workflow] fork of %s#%s denied for user %s: %s",
            kind.name, entity_id, current_user.user_id, outcome.error.reason,
        )
        raise outcome.error
    plan = outcome.value

    with store.transaction():
        _, created = store.atomic_update([
            RowWrite(
                entity_id=plan.latest_id,
                fields={"is_latest_version": False},
                expected={"is_latest_version": True, "status": plan.latest_status},
            ),
            RowWrite(entity_id=None, fields=plan.fields),
        ])
        collaborator_service.copy_collaborators(db, kind.name, source.entity_id, created.entity_id)
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="fork",
            entity_type=kind.name,
            entity_id=created.entity_id,
            after=snapshot(created),
            context={"source_id": source.entity_id, "source_version": source.version},
            description=f"{kind.label} {created.code} v{plan.version} forked from v{source.version}",
        )

    logger.info(
        "[workflow] %s %s forked v%s -> v%s by user %s",
        kind.name, created.code, source.version, plan.version, current_user.user_id,
    )
    db.refresh(created)
    return created
