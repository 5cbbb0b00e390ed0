"""Projects and their student roster. The roster decides who may see and claim project-wide appointments."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.models import User
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from advisor_scheduler.core.models import Appointment, Project, ProjectStudent

from .schemas import AddStudentRequest, ProjectCreate, ProjectResponse, ProjectUpdate, StudentSummary


async def project_students(db: AsyncSession, project_id: UUID) -> List[User]:
    result = await db.execute(
        select(User)
        .join(ProjectStudent, ProjectStudent.student_id == User.id)
        .where(ProjectStudent.project_id == project_id)
        .order_by(User.last_name, User.first_name)
    )
    return list(result.scalars().all())


async def _project_to_response(db: AsyncSession, p: Project) -> ProjectResponse:
    students = await project_students(db, p.id)
    return ProjectResponse(
        id=p.id,
        name=p.name,
        description=p.description,
        advisor_id=p.advisor_id,
        archived=p.archived,
        students=[StudentSummary.model_validate(s) for s in students],
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


async def _load_project(db: AsyncSession, project_id: UUID) -> Project:
    project = await db.get(Project, project_id, populate_existing=True)
    if not project:
        raise NotFound("Project not found")
    return project


async def _membership(db: AsyncSession, project_id: UUID, student_id: UUID) -> Optional[ProjectStudent]:
    result = await db.execute(
        select(ProjectStudent).where(
            ProjectStudent.project_id == project_id,
            ProjectStudent.student_id == student_id,
        )
    )
    return result.scalar_one_or_none()


async def _get_owned_project(db: AsyncSession, project_id: UUID, current_user: CurrentUser) -> Project:
    project = await _load_project(db, project_id)
    if project.advisor_id != current_user.id:
        raise Forbidden("Only the project's advisor can modify it")
    return project


async def list_projects(db: AsyncSession, current_user: CurrentUser) -> List[ProjectResponse]:
    q = select(Project)
    if current_user.role == UserRole.ADVISOR.value:
        q = q.where(Project.advisor_id == current_user.id)
    else:
        q = q.where(
            Project.id.in_(
                select(ProjectStudent.project_id).where(ProjectStudent.student_id == current_user.id)
            )
        )
    result = await db.execute(q.order_by(Project.created_at.desc()))
    return [await _project_to_response(db, p) for p in result.scalars().all()]


async def get_project(db: AsyncSession, project_id: UUID, current_user: CurrentUser) -> ProjectResponse:
    project = await _load_project(db, project_id)
    if project.advisor_id != current_user.id and not await _membership(db, project_id, current_user.id):
        raise NotFound("Project not found")
    return await _project_to_response(db, project)


async def create_project(db: AsyncSession, current_user: CurrentUser, payload: ProjectCreate) -> ProjectResponse:
    name = payload.name.strip()
    if not name:
        raise ValidationError("name is required")
    project = Project(name=name, description=payload.description, advisor_id=current_user.id)
    db.add(project)
    await db.commit()
    return await _project_to_response(db, await _load_project(db, project.id))


async def update_project(
    db: AsyncSession,
    current_user: CurrentUser,
    project_id: UUID,
    payload: ProjectUpdate,
) -> ProjectResponse:
    project = await _get_owned_project(db, project_id, current_user)
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ValidationError("name cannot be empty")
        project.name = name
    if payload.description is not None:
        project.description = payload.description
    await db.commit()
    return await _project_to_response(db, await _load_project(db, project_id))


async def delete_project(db: AsyncSession, current_user: CurrentUser, project_id: UUID) -> None:
    """Projects with appointments cannot be deleted; archive them instead."""
    project = await _get_owned_project(db, project_id, current_user)
    has_appointments = (
        await db.execute(select(Appointment.id).where(Appointment.project_id == project_id).limit(1))
    ).scalar_one_or_none()
    if has_appointments:
        raise Conflict("Project has appointments and cannot be deleted")
    await db.delete(project)
    await db.commit()


async def add_student(
    db: AsyncSession,
    current_user: CurrentUser,
    project_id: UUID,
    payload: AddStudentRequest,
) -> ProjectResponse:
    project = await _get_owned_project(db, project_id, current_user)
    result = await db.execute(
        select(User).where(User.code == payload.student_code.strip(), User.role == UserRole.STUDENT.value)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFound("Student not found")
    if await _membership(db, project.id, student.id):
        raise Conflict("Student is already a member of this project")
    db.add(ProjectStudent(project_id=project.id, student_id=student.id))
    await db.commit()
    return await _project_to_response(db, project)


async def remove_student(
    db: AsyncSession,
    current_user: CurrentUser,
    project_id: UUID,
    student_code: str,
) -> ProjectResponse:
    project = await _get_owned_project(db, project_id, current_user)
    result = await db.execute(
        select(ProjectStudent)
        .join(User, User.id == ProjectStudent.student_id)
        .where(ProjectStudent.project_id == project_id, User.code == student_code)
    )
    membership = result.scalar_one_or_none()
    if not membership:
        raise NotFound("Student is not a member of this project")
    await db.delete(membership)
    await db.commit()
    return await _project_to_response(db, project)
