import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from advisor_scheduler.api.v1.comments.schemas import CommentResponse


class AppointmentCreate(BaseModel):
    """Students pass advisor_id or project_id; advisors pass project_id and optionally one member as student_id."""

    title: str = Field(..., max_length=255)
    date: dt.date
    time: dt.time
    location: str = Field(..., max_length=255)
    notes: Optional[str] = None
    advisor_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    student_id: Optional[UUID] = None


class AppointmentUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    location: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class TransitionRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000, description="Shown to the other party on reject/decline")


class PartySummary(BaseModel):
    """Advisor or student as shown on an appointment card."""

    id: UUID
    code: str
    first_name: str
    last_name: str
    role: str
    email: Optional[str] = None
    phone: Optional[str] = None
    office: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectSummary(BaseModel):
    id: UUID
    name: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: UUID
    title: str
    date: dt.date
    time: dt.time
    location: str
    notes: Optional[str] = None
    status: str
    advisor_id: UUID
    student_id: Optional[UUID] = None
    project_id: Optional[UUID] = None
    created_by: Optional[UUID] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None
    advisor: Optional[PartySummary] = None
    student: Optional[PartySummary] = None
    project: Optional[ProjectSummary] = None
    comments: List[CommentResponse] = []

    class Config:
        from_attributes = True


class SweepResponse(BaseModel):
    count: int
