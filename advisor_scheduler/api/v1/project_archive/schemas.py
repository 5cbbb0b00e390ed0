from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ArchiveCreate(BaseModel):
    project_id: UUID
    academic_year: Optional[str] = Field(None, max_length=10, description="Defaults to the completion year")
    semester: Optional[str] = Field(None, max_length=10)
    completion_date: Optional[date] = None
    final_grade: Optional[str] = Field(None, max_length=20)
    project_type: Optional[str] = Field(None, max_length=100)
    technology_used: Optional[str] = Field(None, description="Comma separated, e.g. 'React, PostgreSQL'")
    keywords: Optional[str] = None


class ArchiveResponse(BaseModel):
    id: UUID
    project_id: Optional[UUID] = None
    project_name: str
    description: Optional[str] = None
    advisor_name: str
    student_names: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    completion_date: date
    total_appointments: int
    completed_appointments: int
    success_rate: float
    attendance_rate: float
    final_grade: Optional[str] = None
    project_type: Optional[str] = None
    technology_used: Optional[str] = None
    keywords: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ArchiveFilters(BaseModel):
    q: Optional[str] = None
    academic_year: Optional[str] = None
    semester: Optional[str] = None
    advisor_name: Optional[str] = None
    technology: Optional[str] = None
    grade: Optional[str] = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class ArchiveSearchResponse(BaseModel):
    data: List[ArchiveResponse]
    pagination: Pagination
    filters: ArchiveFilters


class ArchiveStatistics(BaseModel):
    total_projects: int
    average_grade: float
    projects_by_year: Dict[str, int]
    projects_by_semester: Dict[str, int]
    projects_by_advisor: Dict[str, int]
