"""Service layer package."""

from app.services import (
    auth_service,
    audit_service,
    notification_service,
    message_service,
    collaborator_service,
    lineage_store,
    versioning_service,
    course_service,
    degree_service,
    enrollment_service,
    timeline_service,
)
