"""Degree request/response contracts."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class DegreeBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    duration_years: int = Field(ge=1, le=10)
    activation_date: Optional[datetime] = None


class DegreeCreate(DegreeBase):
    code: str = Field(min_length=2, max_length=15)
    department_code: Optional[str] = None


class DegreeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    duration_years: Optional[int] = Field(default=None, ge=1, le=10)
    activation_date: Optional[datetime] = None


class DegreeOut(DegreeBase):
    degree_id: int
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
