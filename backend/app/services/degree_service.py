"""Degree-specific rules on top of the shared versioning workflow."""

from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.degree import Degree
from app.models.user import User
from app.services import versioning_service
from app.workflow.kinds import DEGREE


def list_degrees(
    db: Session,
    *,
    status: Optional[str] = None,
    department_code: Optional[str] = None,
    latest_only: bool = True,
    search: Optional[str] = None,
) -> List[Degree]:
    return versioning_service.list_entities(
        db,
        DEGREE,
        status=status,
        department_code=department_code,
        latest_only=latest_only,
        search=search,
    )


def create_degree(db: Session, data: Dict, current_user: User) -> Degree:
    return versioning_service.create_entity(db, DEGREE, data, current_user)


def update_degree(db: Session, degree_id: int, data: Dict, current_user: User) -> Degree:
    return versioning_service.update_entity(db, DEGREE, degree_id, data, current_user)


def list_degree_courses(db: Session, degree_id: int) -> List[Course]:
    """Latest course versions attached to a degree's code."""
    degree = versioning_service.get_entity(db, DEGREE, degree_id)
    return (
        db.query(Course)
        .filter(Course.degree_code == degree.code, Course.is_latest_version == True)
        .order_by(Course.semester.asc(), Course.code.asc())
        .all()
    )
