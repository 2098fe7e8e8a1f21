"""Workflow endpoints shared by the course and degree routers."""

from typing import List, Optional, Type

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.timeline import CollaboratorAdd
from app.schemas.user import UserBrief
from app.schemas.workflow import CanEditOut, DeleteResult, RejectRequest, TransitionRequest
from app.services import collaborator_service, versioning_service
from app.workflow.kinds import EntityKind

# Actions exposed as POST /{id}/{action} with an optional note.
SIMPLE_ACTIONS = ("submit", "approve", "publish", "activate", "disable", "archive")


def add_versioned_routes(router: APIRouter, kind: EntityKind, out_schema: Type[BaseModel]) -> APIRouter:
    """Register read, edit-guard, lineage, transition and collaborator routes for ``kind``."""

    @router.get("/{entity_id}", response_model=out_schema)
    def get_entity(
        entity_id: int,
        edit: bool = False,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        entity = versioning_service.get_entity(db, kind, entity_id)
        if edit:
            versioning_service.ensure_editable(db, kind, entity)
        return entity

    @router.get("/{entity_id}/edit", response_model=out_schema)
    def get_for_edit(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        entity = versioning_service.get_entity(db, kind, entity_id)
        versioning_service.ensure_editable(db, kind, entity)
        return entity

    @router.get("/{entity_id}/can-edit", response_model=CanEditOut)
    def can_edit(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        entity = versioning_service.get_entity(db, kind, entity_id)
        decision = versioning_service.check_edit(db, kind, entity)
        body = decision.to_response(kind.name)
        body.pop("error", None)
        body["newerVersions"] = decision.newer_versions_payload()
        return body

    @router.get("/{entity_id}/versions", response_model=List[out_schema])
    def list_versions(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return versioning_service.list_versions(db, kind, entity_id)

    @router.post("/{entity_id}/versions", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    def fork_version(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return versioning_service.fork(db, kind, entity_id, current_user)

    def make_action_route(action: str):
        def run_action(
            entity_id: int,
            payload: Optional[TransitionRequest] = None,
            db: Session = Depends(get_db),
            current_user: User = Depends(get_current_user),
        ):
            return versioning_service.apply_transition(
                db, kind, entity_id, action, current_user,
                message=payload.message if payload else None,
            )

        run_action.__name__ = f"{action}_{kind.name}"
        router.add_api_route(
            f"/{{entity_id}}/{action}",
            run_action,
            methods=["POST"],
            response_model=out_schema,
            name=f"{action}_{kind.name}",
        )

    for action in SIMPLE_ACTIONS:
        make_action_route(action)

    @router.post("/{entity_id}/reject", response_model=out_schema)
    def reject(
        entity_id: int,
        payload: RejectRequest,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return versioning_service.apply_transition(
            db, kind, entity_id, "reject", current_user,
            reason=payload.reason,
            message=payload.message,
        )

    @router.delete("/{entity_id}", response_model=DeleteResult)
    def delete_entity(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        versioning_service.apply_transition(db, kind, entity_id, "delete", current_user)
        return DeleteResult(message=f"{kind.label} draft deleted.", deleted_id=entity_id)

    @router.get("/{entity_id}/collaborators", response_model=List[UserBrief])
    def list_collaborators(
        entity_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        versioning_service.get_entity(db, kind, entity_id)
        return collaborator_service.list_collaborators(db, kind.name, entity_id)

    @router.post("/{entity_id}/collaborators", response_model=List[UserBrief], status_code=status.HTTP_201_CREATED)
    def add_collaborator(
        entity_id: int,
        payload: CollaboratorAdd,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return collaborator_service.add_collaborator(db, kind, entity_id, payload.user_id, current_user)

    @router.delete("/{entity_id}/collaborators/{user_id}", response_model=List[UserBrief])
    def remove_collaborator(
        entity_id: int,
        user_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user),
    ):
        return collaborator_service.remove_collaborator(db, kind, entity_id, user_id, current_user)

    return router
