"""Course domain SQLAlchemy model."""

from sqlalchemy import Column, Integer, String, Text, Boolean, JSON, Index
from app.database import Base
from app.models.versioned import VersionedColumns


class Course(VersionedColumns, Base):
    __tablename__ = "courses"
    __id_field__ = "course_id"

    course_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    description = Column(Text)
    credits = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    degree_code = Column(String(10))
    is_elective = Column(Boolean, default=False)
    max_students = Column(Integer)
    prerequisites = Column(JSON, default=list)

    __table_args__ = (
        Index("uq_course_code_version", "code", "version", unique=True),
        Index("idx_course_status", "status"),
        Index("idx_course_department", "department_code"),
    )
