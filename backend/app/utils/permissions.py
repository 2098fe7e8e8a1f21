"""Shared permission helpers for users and workflow actors."""

from typing import Iterable, Set

from app.models.user import User
from app.workflow.kinds import ActorRole

ADMIN = "admin"
FACULTY = "faculty"
OFFICE = "office"
STUDENT = "student"


def is_admin(user: User) -> bool:
    return user.role == ADMIN

def is_faculty(user: User) -> bool:
    return user.role == FACULTY

def is_office(user: User) -> bool:
    return user.role == OFFICE

def is_student(user: User) -> bool:
    return user.role == STUDENT

def is_department_head(user: User, department_code: str = None) -> bool:
    if not user.is_head_of_department:
        return False
    return department_code is None or user.department_code == department_code

def actor_roles_for(entity, user: User, collaborator_ids: Iterable[int] = ()) -> Set[str]:
    """Workflow roles ``user`` holds on a course or degree."""
    roles: Set[str] = set()
    if entity.created_by == user.user_id:
        roles.add(ActorRole.CREATOR)
    if user.user_id in set(collaborator_ids):
        roles.add(ActorRole.COLLABORATOR)
    if is_department_head(user, entity.department_code):
        roles.add(ActorRole.DEPARTMENT_HEAD)
    if is_faculty(user) and user.department_code == entity.department_code:
        roles.add(ActorRole.DEPARTMENT_FACULTY)
    if is_admin(user):
        roles.add(ActorRole.ADMIN)
    return roles
