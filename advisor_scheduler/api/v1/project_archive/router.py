from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.rbac import require_role
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.exceptions import ServiceError
from advisor_scheduler.db.session import get_db

from .schemas import (
    ArchiveCreate,
    ArchiveFilters,
    ArchiveResponse,
    ArchiveSearchResponse,
    ArchiveStatistics,
)
from . import service

router = APIRouter(prefix="/api/v1/project-archive", tags=["project-archive"])


@router.get(
    "",
    response_model=List[ArchiveResponse],
    dependencies=[Depends(get_current_user)],
)
async def list_archives(
    q: Optional[str] = Query(None, description="Match on project name, description or keywords"),
    db: AsyncSession = Depends(get_db),
) -> List[ArchiveResponse]:
    return await service.list_archives(db, q)


@router.get(
    "/search",
    response_model=ArchiveSearchResponse,
    dependencies=[Depends(get_current_user)],
)
async def search_archives(
    q: Optional[str] = Query(None),
    academic_year: Optional[str] = Query(None),
    semester: Optional[str] = Query(None),
    advisor_name: Optional[str] = Query(None),
    technology: Optional[str] = Query(None),
    grade: Optional[str] = Query(None, description="Exact final grade"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ArchiveSearchResponse:
    filters = ArchiveFilters(
        q=q,
        academic_year=academic_year,
        semester=semester,
        advisor_name=advisor_name,
        technology=technology,
        grade=grade,
    )
    return await service.search_archives(db, filters, page=page, limit=limit)


@router.get(
    "/statistics",
    response_model=ArchiveStatistics,
    dependencies=[Depends(get_current_user)],
)
async def archive_statistics(db: AsyncSession = Depends(get_db)) -> ArchiveStatistics:
    """Totals, average grade points and archive counts per year, semester and advisor."""
    return await service.archive_statistics(db)


@router.post("", response_model=ArchiveResponse, status_code=status.HTTP_201_CREATED)
async def archive_project(
    payload: ArchiveCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_role(UserRole.ADVISOR.value)),
) -> ArchiveResponse:
    try:
        return await service.archive_project(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
