"""Course API: listing, authoring and the shared versioning workflow."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.routers.versioned import add_versioned_routes
from app.schemas.course import CourseCreate, CourseOut, CourseUpdate
from app.services import course_service
from app.workflow.kinds import COURSE

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("", response_model=List[CourseOut])
def list_courses(
    status: Optional[str] = None,
    department_code: Optional[str] = None,
    degree_code: Optional[str] = None,
    semester: Optional[int] = None,
    latest_only: bool = True,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return course_service.list_courses(
        db,
        status=status,
        department_code=department_code,
        degree_code=degree_code,
        semester=semester,
        latest_only=latest_only,
        search=search,
    )


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return course_service.create_course(db, data.model_dump(), current_user)


@router.put("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: int,
    data: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return course_service.update_course(db, course_id, data.model_dump(exclude_none=True), current_user)


add_versioned_routes(router, COURSE, CourseOut)
