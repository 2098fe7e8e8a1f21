"""Enrollment API: student drafts and the two-stage approval queue."""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.enrollment import (
    EnrollmentDecision,
    EnrollmentDraftCreate,
    EnrollmentDraftSave,
    EnrollmentOut,
)
from app.services import enrollment_service

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


@router.post("/drafts", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def create_draft(
    data: EnrollmentDraftCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return enrollment_service.create_draft(db, data.model_dump(), current_user)


@router.get("/my", response_model=List[EnrollmentOut])
def list_my_enrollments(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return enrollment_service.list_my_enrollments(db, current_user)


@router.get("/pending", response_model=List[EnrollmentOut])
def list_pending(
    stage: str = Query(..., pattern="^(hod|office)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return enrollment_service.list_pending(db, stage, current_user)


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
def get_enrollment(enrollment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return enrollment_service.get_enrollment(db, enrollment_id, current_user)


@router.put("/{enrollment_id}/draft", response_model=EnrollmentOut)
def save_draft(
    enrollment_id: int,
    data: EnrollmentDraftSave,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return enrollment_service.save_draft(db, enrollment_id, data.course_codes, current_user)


@router.post("/{enrollment_id}/submit", response_model=EnrollmentOut)
def submit(enrollment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return enrollment_service.submit(db, enrollment_id, current_user)


@router.post("/{enrollment_id}/decision", response_model=EnrollmentOut)
def decide(
    enrollment_id: int,
    data: EnrollmentDecision,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return enrollment_service.decide(db, enrollment_id, data.stage, data.action, current_user, data.reason)


@router.post("/{enrollment_id}/withdraw", response_model=EnrollmentOut)
def withdraw(enrollment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return enrollment_service.withdraw(db, enrollment_id, current_user)
