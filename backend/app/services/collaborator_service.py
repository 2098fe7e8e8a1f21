"""Co-author management for courses and degrees."""

import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.collaborator import Collaborator
from app.models.user import User
from app.services.audit_service import AuditRecorder
from app.services.lineage_store import LineageStore, guarded_transaction
from app.utils.permissions import is_admin, is_department_head, is_faculty
from app.workflow.kinds import EntityKind

logger = logging.getLogger(__name__)


def collaborator_ids(db: Session, entity_type: str, entity_id: int) -> List[int]:
    rows = (
        db.query(Collaborator.user_id)
        .filter(Collaborator.entity_type == entity_type, Collaborator.entity_id == entity_id)
        .all()
    )
    return [row[0] for row in rows]


def list_collaborators(db: Session, entity_type: str, entity_id: int) -> List[User]:
    return (
        db.query(User)
        .join(Collaborator, Collaborator.user_id == User.user_id)
        .filter(Collaborator.entity_type == entity_type, Collaborator.entity_id == entity_id)
        .order_by(User.name.asc())
        .all()
    )


def copy_collaborators(db: Session, entity_type: str, source_id: int, target_id: int) -> None:
    """Carry co-authors of one version over to its fork, inside the caller's transaction."""
    for user_id in collaborator_ids(db, entity_type, source_id):
        db.add(Collaborator(entity_type=entity_type, entity_id=target_id, user_id=user_id))


def delete_for_entity(db: Session, entity_type: str, entity_id: int) -> None:
    db.query(Collaborator).filter(
        Collaborator.entity_type == entity_type,
        Collaborator.entity_id == entity_id,
    ).delete(synchronize_session=False)


def _load_managed_entity(db: Session, kind: EntityKind, entity_id: int, current_user: User):
    entity = LineageStore(db, kind).find_by_id(entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail=f"{kind.label} not found")
    if not (
        entity.created_by == current_user.user_id
        or is_department_head(current_user, entity.department_code)
        or is_admin(current_user)
    ):
        raise HTTPException(
            status_code=403,
            detail="Only the creator, the department head or an admin can manage collaborators.",
        )
    return entity


def add_collaborator(db: Session, kind: EntityKind, entity_id: int, user_id: int, current_user: User) -> List[User]:
    entity = _load_managed_entity(db, kind, entity_id, current_user)
    user = db.query(User).filter(User.user_id == user_id, User.is_active == True).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not is_faculty(user) or user.department_code != entity.department_code:
        raise HTTPException(status_code=400, detail="Collaborators must be faculty of the same department.")
    if user.user_id == entity.created_by:
        raise HTTPException(status_code=400, detail="The creator is already an author.")
    if user.user_id in collaborator_ids(db, kind.name, entity_id):
        raise HTTPException(status_code=400, detail="User is already a collaborator.")

    with guarded_transaction(db):
        db.add(Collaborator(entity_type=kind.name, entity_id=entity_id, user_id=user.user_id))
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="add_collaborator",
            entity_type=kind.name,
            entity_id=entity_id,
            after={"collaborator_id": user.user_id},
            description=f"{user.name} added as collaborator",
        )
    logger.info("[collaborator] user %s added to %s#%s", user.user_id, kind.name, entity_id)
    return list_collaborators(db, kind.name, entity_id)


def remove_collaborator(db: Session, kind: EntityKind, entity_id: int, user_id: int, current_user: User) -> List[User]:
    _load_managed_entity(db, kind, entity_id, current_user)
    row = (
        db.query(Collaborator)
        .filter(
            Collaborator.entity_type == kind.name,
            Collaborator.entity_id == entity_id,
            Collaborator.user_id == user_id,
        )
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail="Collaborator not found")

    with guarded_transaction(db):
        db.delete(row)
        AuditRecorder(db).record(
            actor_id=current_user.user_id,
            action="remove_collaborator",
            entity_type=kind.name,
            entity_id=entity_id,
            before={"collaborator_id": user_id},
            description="Collaborator removed",
        )
    logger.info("[collaborator] user %s removed from %s#%s", user_id, kind.name, entity_id)
    return list_collaborators(db, kind.name, entity_id)
