"""Degree API: listing, authoring and the shared versioning workflow."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.routers.versioned import add_versioned_routes
from app.schemas.course import CourseOut
from app.schemas.degree import DegreeCreate, DegreeOut, DegreeUpdate
from app.services import degree_service
from app.workflow.kinds import DEGREE

router = APIRouter(prefix="/api/degrees", tags=["degrees"])


@router.get("", response_model=List[DegreeOut])
def list_degrees(
    status: Optional[str] = None,
    department_code: Optional[str] = None,
    latest_only: bool = True,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return degree_service.list_degrees(
        db,
        status=status,
        department_code=department_code,
        latest_only=latest_only,
        search=search,
    )


@router.post("", response_model=DegreeOut, status_code=status.HTTP_201_CREATED)
def create_degree(
    data: DegreeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return degree_service.create_degree(db, data.model_dump(), current_user)


@router.put("/{degree_id}", response_model=DegreeOut)
def update_degree(
    degree_id: int,
    data: DegreeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return degree_service.update_degree(db, degree_id, data.model_dump(exclude_none=True), current_user)


@router.get("/{degree_id}/courses", response_model=List[CourseOut])
def list_degree_courses(
    degree_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return degree_service.list_degree_courses(db, degree_id)


add_versioned_routes(router, DEGREE, DegreeOut)
