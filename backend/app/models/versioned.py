"""Columns shared by every versioned curriculum entity (courses, degrees)."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func


class VersionedColumns:
    """Lineage and workflow columns.

    Concrete models declare their own primary key and ``__id_field__`` naming it;
    ``parent_id`` points at the previous version in the chain, which is the fork
    source unless the fork resumed below a retired latest version.
    """

    __id_field__ = "id"

    code = Column(String(15), nullable=False)  # base code, no version suffix
    version = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="draft")
    is_latest_version = Column(Boolean, nullable=False, default=True)
    department_code = Column(String(10), nullable=False)
    rejection_reason = Column(Text)
    activation_date = Column(DateTime)
    submitted_at = Column(DateTime)
    approved_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    @declared_attr
    def parent_id(cls):
        return Column(Integer, ForeignKey(f"{cls.__tablename__}.{cls.__id_field__}"), nullable=True)

    @declared_attr
    def created_by(cls):
        return Column(Integer, ForeignKey("users.user_id"), nullable=False)

    @declared_attr
    def updated_by(cls):
        return Column(Integer, ForeignKey("users.user_id"), nullable=True)

    @declared_attr
    def approved_by(cls):
        return Column(Integer, ForeignKey("users.user_id"), nullable=True)

    @property
    def entity_id(self) -> int:
        return getattr(self, self.__id_field__)
