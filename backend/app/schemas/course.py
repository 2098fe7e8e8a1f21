"""Course request/response contracts."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CourseBase(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    credits: int = Field(ge=1, le=20)
    semester: int = Field(ge=1, le=10)
    degree_code: Optional[str] = None
    is_elective: bool = False
    max_students: Optional[int] = Field(default=None, ge=1)
    prerequisites: List[str] = Field(default_factory=list)
    activation_date: Optional[datetime] = None


class CourseCreate(CourseBase):
    code: str = Field(min_length=2, max_length=15)
    department_code: Optional[str] = None


class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    description: Optional[str] = None
    credits: Optional[int] = Field(default=None, ge=1, le=20)
    semester: Optional[int] = Field(default=None, ge=1, le=10)
    degree_code: Optional[str] = None
    is_elective: Optional[bool] = None
    max_students: Optional[int] = Field(default=None, ge=1)
    prerequisites: Optional[List[str]] = None
    activation_date: Optional[datetime] = None


class CourseOut(CourseBase):
    course_id: int
    code: str
    version: int
    status: str
    is_latest_version: bool
    parent_id: Optional[int]
    department_code: str
    rejection_reason: Optional[str]
    created_by: int
    updated_by: Optional[int]
    approved_by: Optional[int]
    submitted_at: Optional[datetime]
    approved_at: Optional[datetime]
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}
