"""Timeline and collaborator contracts."""

from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime


class TimelineItem(BaseModel):
    kind: str  # audit/message
    item_id: int
    actor_id: int
    action: Optional[str] = None
    message: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    context: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


class CollaboratorAdd(BaseModel):
    user_id: int
