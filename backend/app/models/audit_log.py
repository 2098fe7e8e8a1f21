"""Write-once audit trail of workflow transitions."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index, event
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    audit_id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    action = Column(String(30), nullable=False)
    entity_type = Column(String(20), nullable=False)  # course/degree/enrollment
    entity_id = Column(Integer, nullable=False)
    old_values = Column(JSON)
    new_values = Column(JSON)
    context = Column("metadata", JSON)
    description = Column(String(500))
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id", "created_at"),
        Index("idx_audit_actor", "actor_id", "created_at"),
    )


@event.listens_for(AuditLog, "before_update")
def _reject_update(mapper, connection, target):
    raise ValueError("Audit entries are write-once and cannot be updated.")


@event.listens_for(AuditLog, "before_delete")
def _reject_delete(mapper, connection, target):
    raise ValueError("Audit entries are write-once and cannot be deleted.")
