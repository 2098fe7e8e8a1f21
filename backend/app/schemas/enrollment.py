"""Enrollment request/response contracts."""

from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime


class EnrollmentDraftCreate(BaseModel):
    academic_year: str = Field(pattern=r"^\d{4}-\d{4}$")
    semester: int = Field(ge=1, le=10)
    course_codes: List[str] = Field(default_factory=list)


class EnrollmentDraftSave(BaseModel):
    course_codes: List[str]


class EnrollmentDecision(BaseModel):
    stage: Literal["hod", "office"]
    action: Literal["approve", "reject"]
    reason: Optional[str] = None


class EnrollmentOut(BaseModel):
    enrollment_id: int
    student_id: int
    course_codes: List[str]
    status: str
    department_code: str
    academic_year: str
    semester: int
    submitted_at: Optional[datetime]
    hod_decided_by: Optional[int]
    hod_decided_at: Optional[datetime]
    office_decided_by: Optional[int]
    office_decided_at: Optional[datetime]
    rejection_reason: Optional[str]
    rejected_stage: Optional[str]
    withdrawn_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}
