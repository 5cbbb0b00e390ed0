from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class AddStudentRequest(BaseModel):
    student_code: str = Field(..., min_length=1, max_length=50)


class StudentSummary(BaseModel):
    id: UUID
    code: str
    first_name: str
    last_name: str
    email: Optional[str] = None

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    advisor_id: UUID
    archived: bool
    students: List[StudentSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None
