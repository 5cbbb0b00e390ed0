import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship

from advisor_scheduler.db.session import Base


class User(Base):
    """Student or advisor account. `code` is the student number or staff number used to log in."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(50), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=False, unique=True)
    email = Column(String(255), nullable=True)
    # student | advisor
    role = Column(String(20), nullable=False)
    office = Column(String(100), nullable=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    advised_projects = relationship("Project", back_populates="advisor")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
