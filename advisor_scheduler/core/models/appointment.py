"""Appointments between an advisor and a student (or a whole project)."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Time, Uuid
from sqlalchemy.orm import relationship

from advisor_scheduler.core.enums import AppointmentStatus
from advisor_scheduler.db.session import Base


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    location = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(40), nullable=False, default=AppointmentStatus.PENDING.value, index=True)
    advisor_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Null for project-wide appointments until a member accepts
    student_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    project_id = Column(Uuid(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    advisor = relationship("User", foreign_keys=[advisor_id])
    student = relationship("User", foreign_keys=[student_id])
    project = relationship("Project", foreign_keys=[project_id])
