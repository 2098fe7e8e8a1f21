"""SQLAlchemy model package initialization."""

from app.models.user import User
from app.models.course import Course
from app.models.degree import Degree
from app.models.enrollment import Enrollment
from app.models.audit_log import AuditLog
from app.models.collaborator import Collaborator
from app.models.message import Message
from app.models.notification import Notification

__all__ = [
    "User",
    "Course",
    "Degree",
    "Enrollment",
    "AuditLog",
    "Collaborator",
    "Message",
    "Notification",
]
