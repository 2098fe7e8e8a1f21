"""Co-authors of a course or degree."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Collaborator(Base):
    __tablename__ = "collaborators"

    collaborator_id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(20), nullable=False)  # course/degree
    entity_id = Column(Integer, nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "user_id", name="uq_collaborator_entity_user"),
    )
