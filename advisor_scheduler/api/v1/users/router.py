from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.rbac import require_role
from advisor_scheduler.auth.schemas import CurrentUser, UserInfo
from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.exceptions import ServiceError
from advisor_scheduler.db.session import get_db

from .schemas import UserCreate, UserUpdate
from . import service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get(
    "",
    response_model=List[UserInfo],
    dependencies=[Depends(require_role(UserRole.ADVISOR.value))],
)
async def list_users(db: AsyncSession = Depends(get_db)) -> List[UserInfo]:
    return await service.list_users(db)


@router.post(
    "",
    response_model=UserInfo,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(UserRole.ADVISOR.value))],
)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserInfo:
    try:
        return await service.create_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{user_id}", response_model=UserInfo)
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserInfo:
    """Update a profile. Students may only update themselves."""
    try:
        return await service.update_user(db, current_user, user_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
