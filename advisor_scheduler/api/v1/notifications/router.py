from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.exceptions import ServiceError
from advisor_scheduler.db.session import get_db

from .schemas import NotificationResponse, ReadAllResponse
from . import service

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationResponse])
async def list_notifications(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[NotificationResponse]:
    return await service.list_notifications(db, current_user.id)


@router.put("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReadAllResponse:
    updated = await service.mark_all_read(db, current_user.id)
    return ReadAllResponse(updated=updated)


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> NotificationResponse:
    try:
        return await service.mark_read(db, current_user.id, notification_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
