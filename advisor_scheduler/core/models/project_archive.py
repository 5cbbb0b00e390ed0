"""Frozen snapshot of a finished project, kept for the archive search page."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, Uuid

from advisor_scheduler.db.session import Base


class ProjectArchive(Base):
    __tablename__ = "project_archive"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, unique=True)
    project_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    advisor_name = Column(String(255), nullable=False, index=True)
    # Comma separated full names at the time of archiving
    student_names = Column(Text, nullable=True)
    academic_year = Column(String(10), nullable=True, index=True)
    semester = Column(String(10), nullable=True)
    completion_date = Column(Date, nullable=False)
    total_appointments = Column(Integer, nullable=False, default=0)
    completed_appointments = Column(Integer, nullable=False, default=0)
    success_rate = Column(Float, nullable=False, default=0.0)
    attendance_rate = Column(Float, nullable=False, default=0.0)
    final_grade = Column(String(20), nullable=True)
    project_type = Column(String(100), nullable=True)
    technology_used = Column(Text, nullable=True)
    keywords = Column(Text, nullable=True)
    archived_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
