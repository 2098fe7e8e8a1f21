"""Enrollment domain SQLAlchemy model."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

# Records in these statuses no longer occupy the (student, period) slot.
RELEASED_STATUSES = ("rejected", "withdrawn")


class Enrollment(Base):
    __tablename__ = "enrollments"

    enrollment_id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.user_id"), nullable=False)
    course_codes = Column(JSON, nullable=False, default=list)
    status = Column(String(30), nullable=False, default="draft")
    # draft/pending_hod_approval/pending_office_approval/approved/rejected/withdrawn
    department_code = Column(String(10), nullable=False)
    academic_year = Column(String(9), nullable=False)  # YYYY-YYYY
    semester = Column(Integer, nullable=False)
    submitted_at = Column(DateTime)
    hod_decided_by = Column(Integer, ForeignKey("users.user_id"))
    hod_decided_at = Column(DateTime)
    office_decided_by = Column(Integer, ForeignKey("users.user_id"))
    office_decided_at = Column(DateTime)
    rejection_reason = Column(Text)
    rejected_stage = Column(String(10))  # hod/office
    withdrawn_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (
        Index(
            "uq_enrollment_live_period",
            "student_id", "academic_year", "semester",
            unique=True,
            sqlite_where=status.notin_(RELEASED_STATUSES),
            postgresql_where=status.notin_(RELEASED_STATUSES),
        ),
        Index("idx_enrollment_status", "status", "department_code"),
        Index("idx_enrollment_student", "student_id"),
    )
