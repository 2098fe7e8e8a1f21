"""Course-specific rules on top of the shared versioning workflow."""

from typing import Dict, Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.degree import Degree
from app.models.user import User
from app.services import versioning_service
from app.workflow import statuses as st
from app.workflow.kinds import COURSE


def _check_degree(db: Session, degree_code: Optional[str]) -> Optional[str]:
    if not degree_code:
        return None
    code = degree_code.strip().upper()
    if not db.query(Degree.degree_id).filter(Degree.code == code).first():
        raise HTTPException(status_code=400, detail=f"Degree {code} does not exist.")
    return code


def _normalize(db: Session, data: Dict) -> Dict:
    values = dict(data)
    if "degree_code" in values:
        values["degree_code"] = _check_degree(db, values["degree_code"])
    if values.get("prerequisites") is not None:
        values["prerequisites"] = list(dict.fromkeys(c.strip().upper() for c in values["prerequisites"] if c.strip()))
    return values


def list_courses(
    db: Session,
    *,
    status: Optional[str] = None,
    department_code: Optional[str] = None,
    degree_code: Optional[str] = None,
    semester: Optional[int] = None,
    latest_only: bool = True,
    search: Optional[str] = None,
) -> List[Course]:
    return versioning_service.list_entities(
        db,
        COURSE,
        status=status,
        department_code=department_code,
        latest_only=latest_only,
        search=search,
        filters={"degree_code": degree_code.upper() if degree_code else None, "semester": semester},
    )


def create_course(db: Session, data: Dict, current_user: User) -> Course:
    return versioning_service.create_entity(db, COURSE, _normalize(db, data), current_user)


def update_course(db: Session, course_id: int, data: Dict, current_user: User) -> Course:
    return versioning_service.update_entity(db, COURSE, course_id, _normalize(db, data), current_user)


def active_course_codes(db: Session, codes: Iterable[str]) -> List[str]:
    """Codes among ``codes`` that currently have an active version."""
    wanted = list(codes)
    if not wanted:
        return []
    rows = (
        db.query(Course.code)
        .filter(Course.code.in_(wanted), Course.status == st.ACTIVE)
        .distinct()
        .all()
    )
    return [row[0] for row in rows]
