"""Timeline API: audit entries and messages of one entity."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth_middleware import get_current_user
from app.models.user import User
from app.schemas.timeline import TimelineItem
from app.services import enrollment_service, timeline_service

router = APIRouter(prefix="/api/timeline", tags=["timeline"])


@router.get("/{entity_type}/{entity_id}", response_model=List[TimelineItem])
def get_timeline(
    entity_type: str,
    entity_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if entity_type == enrollment_service.ENTITY_TYPE:
        enrollment_service.get_enrollment(db, entity_id, current_user)
    return timeline_service.build_timeline(db, entity_type, entity_id)
