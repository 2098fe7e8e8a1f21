"""Request/response contracts for workflow actions on versioned entities."""

from pydantic import BaseModel
from typing import List, Optional


class TransitionRequest(BaseModel):
    message: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str
    message: Optional[str] = None


class VersionOut(BaseModel):
    id: int
    version: int
    status: str
    created_at: Optional[str] = None


class CanEditOut(BaseModel):
    canEdit: bool
    reason: str
    courseStatus: str
    isLatestVersion: bool
    version: int
    newerVersionsCount: int
    blockingVersions: List[VersionOut]
    newerVersions: List[VersionOut]


class DeleteResult(BaseModel):
    message: str
    deleted_id: int
