from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.rbac import require_role
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.exceptions import ServiceError
from advisor_scheduler.db.session import get_db

from .schemas import AddStudentRequest, ProjectCreate, ProjectResponse, ProjectUpdate
from . import service

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])

require_advisor = require_role(UserRole.ADVISOR.value)


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ProjectResponse]:
    """Advisors see projects they own, students the projects they belong to."""
    return await service.list_projects(db, current_user)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_advisor),
) -> ProjectResponse:
    try:
        return await service.create_project(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ProjectResponse:
    try:
        return await service.get_project(db, project_id, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_advisor),
) -> ProjectResponse:
    try:
        return await service.update_project(db, current_user, project_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_advisor),
) -> Response:
    try:
        await service.delete_project(db, current_user, project_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/students", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def add_student(
    project_id: UUID,
    payload: AddStudentRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_advisor),
) -> ProjectResponse:
    """Enroll a student by their student number."""
    try:
        return await service.add_student(db, current_user, project_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{project_id}/students/{student_code}", response_model=ProjectResponse)
async def remove_student(
    project_id: UUID,
    student_code: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_advisor),
) -> ProjectResponse:
    try:
        return await service.remove_student(db, current_user, project_id, student_code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
