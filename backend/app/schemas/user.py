"""User request/response contracts."""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    emp_id: str
    name: str
    role: str
    department_code: Optional[str] = None
    is_head_of_department: bool = False
    email: Optional[str] = None


class UserOut(UserBase):
    user_id: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class UserBrief(BaseModel):
    user_id: int
    name: str
    department_code: Optional[str] = None

    model_config = {"from_attributes": True}


class LoginRequest(BaseModel):
    emp_id: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
