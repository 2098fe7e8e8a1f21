"""Degree domain SQLAlchemy model."""

from sqlalchemy import Column, Integer, String, Text, Index
from app.database import Base
from app.models.versioned import VersionedColumns


class Degree(VersionedColumns, Base):
    __tablename__ = "degrees"
    __id_field__ = "degree_id"

    degree_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    duration_years = Column(Integer, nullable=False)

    __table_args__ = (
        Index("uq_degree_code_version", "code", "version", unique=True),
        Index("idx_degree_status", "status"),
        Index("idx_degree_department", "department_code"),
    )
