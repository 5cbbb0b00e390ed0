"""Projects owned by an advisor and their student roster."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from advisor_scheduler.db.session import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    advisor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    advisor = relationship("User", back_populates="advised_projects", foreign_keys=[advisor_id])
    memberships = relationship(
        "ProjectStudent",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ProjectStudent(Base):
    """One row per student enrolled in a project."""

    __tablename__ = "project_students"
    __table_args__ = (
        UniqueConstraint("project_id", "student_id", name="uq_project_student"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="memberships", foreign_keys=[project_id])
    student = relationship("User", foreign_keys=[student_id], lazy="selectin")
