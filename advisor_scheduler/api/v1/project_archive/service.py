"""Snapshot finished projects with their appointment statistics."""

import math
from datetime import date
from typing import List, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.api.v1.projects.service import project_students
from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.enums import AppointmentStatus
from advisor_scheduler.core.exceptions import Conflict, Forbidden, NotFound
from advisor_scheduler.core.models import Appointment, Project, ProjectArchive

from .schemas import (
    ArchiveCreate,
    ArchiveFilters,
    ArchiveResponse,
    ArchiveSearchResponse,
    ArchiveStatistics,
    Pagination,
)

# Grade points used for the archive-wide average; any other grade counts as 0
GRADE_POINTS = {"A": 4.0, "B+": 3.5, "B": 3.0, "C+": 2.5, "C": 2.0}


def success_rate(completed: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(completed / total * 100, 1)


def attendance_rate(completed: int, failed: int) -> float:
    """Share of held meetings the student actually attended."""
    return success_rate(completed, completed + failed)


async def _count_by_status(db: AsyncSession, project_id, status: AppointmentStatus) -> int:
    return (
        await db.execute(
            select(func.count(Appointment.id)).where(
                Appointment.project_id == project_id,
                Appointment.status == status.value,
            )
        )
    ).scalar_one()


async def archive_project(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: ArchiveCreate,
) -> ArchiveResponse:
    project = await db.get(Project, payload.project_id)
    if not project:
        raise NotFound("Project not found")
    if project.advisor_id != current_user.id:
        raise Forbidden("Only the project's advisor can archive it")
    existing = (
        await db.execute(select(ProjectArchive.id).where(ProjectArchive.project_id == project.id))
    ).scalar_one_or_none()
    if project.archived or existing:
        raise Conflict("Project is already archived")

    total = (
        await db.execute(select(func.count(Appointment.id)).where(Appointment.project_id == project.id))
    ).scalar_one()
    completed = await _count_by_status(db, project.id, AppointmentStatus.COMPLETED)
    failed = await _count_by_status(db, project.id, AppointmentStatus.FAILED)
    advisor = await db.get(User, project.advisor_id)
    students = await project_students(db, project.id)
    student_names = ", ".join(s.full_name for s in students)
    completion_date = payload.completion_date or date.today()

    archive = ProjectArchive(
        project_id=project.id,
        project_name=project.name,
        description=project.description,
        advisor_name=advisor.full_name if advisor else "",
        student_names=student_names or None,
        academic_year=payload.academic_year or str(completion_date.year),
        semester=payload.semester,
        completion_date=completion_date,
        total_appointments=total,
        completed_appointments=completed,
        success_rate=success_rate(completed, total),
        attendance_rate=attendance_rate(completed, failed),
        final_grade=payload.final_grade,
        project_type=payload.project_type,
        technology_used=payload.technology_used,
        keywords=payload.keywords,
        archived_by=current_user.id,
    )
    db.add(archive)
    project.archived = True
    await db.commit()
    await db.refresh(archive)
    return ArchiveResponse.model_validate(archive)


def _like(value: str) -> str:
    return f"%{value.strip().lower()}%"


def _filtered(stmt, filters: ArchiveFilters):
    if filters.q and filters.q.strip():
        pattern = _like(filters.q)
        stmt = stmt.where(
            or_(
                func.lower(ProjectArchive.project_name).like(pattern),
                func.lower(ProjectArchive.description).like(pattern),
                func.lower(ProjectArchive.keywords).like(pattern),
            )
        )
    if filters.academic_year:
        stmt = stmt.where(ProjectArchive.academic_year == filters.academic_year)
    if filters.semester:
        stmt = stmt.where(ProjectArchive.semester == filters.semester)
    if filters.advisor_name and filters.advisor_name.strip():
        stmt = stmt.where(func.lower(ProjectArchive.advisor_name).like(_like(filters.advisor_name)))
    if filters.technology and filters.technology.strip():
        stmt = stmt.where(func.lower(ProjectArchive.technology_used).like(_like(filters.technology)))
    if filters.grade:
        stmt = stmt.where(ProjectArchive.final_grade == filters.grade)
    return stmt


async def list_archives(db: AsyncSession, q: Optional[str] = None) -> List[ArchiveResponse]:
    stmt = _filtered(select(ProjectArchive), ArchiveFilters(q=q))
    result = await db.execute(stmt.order_by(ProjectArchive.created_at.desc()))
    return [ArchiveResponse.model_validate(a) for a in result.scalars().all()]


async def search_archives(
    db: AsyncSession,
    filters: ArchiveFilters,
    page: int = 1,
    limit: int = 10,
) -> ArchiveSearchResponse:
    total = (
        await db.execute(_filtered(select(func.count(ProjectArchive.id)), filters))
    ).scalar_one()
    stmt = (
        _filtered(select(ProjectArchive), filters)
        .order_by(ProjectArchive.completion_date.desc(), ProjectArchive.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return ArchiveSearchResponse(
        data=[ArchiveResponse.model_validate(a) for a in rows],
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_items=total,
            items_per_page=limit,
        ),
        filters=filters,
    )


async def _group_counts(db: AsyncSession, column, order_by, limit: Optional[int] = None):
    stmt = (
        select(column, func.count(ProjectArchive.id))
        .where(column.isnot(None))
        .group_by(column)
        .order_by(order_by)
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return {key: count for key, count in result.all()}


async def archive_statistics(db: AsyncSession) -> ArchiveStatistics:
    points = case(
        *[(ProjectArchive.final_grade == grade, value) for grade, value in GRADE_POINTS.items()],
        else_=0.0,
    )
    total, average = (
        await db.execute(select(func.count(ProjectArchive.id), func.avg(points)))
    ).one()
    count = func.count(ProjectArchive.id)
    return ArchiveStatistics(
        total_projects=total,
        average_grade=round(float(average or 0), 2),
        projects_by_year=await _group_counts(
            db, ProjectArchive.academic_year, ProjectArchive.academic_year.desc()
        ),
        projects_by_semester=await _group_counts(db, ProjectArchive.semester, ProjectArchive.semester),
        projects_by_advisor=await _group_counts(db, ProjectArchive.advisor_name, count.desc(), limit=10),
    )
