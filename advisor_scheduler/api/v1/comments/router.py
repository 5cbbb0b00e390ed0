from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.exceptions import ServiceError
from advisor_scheduler.db.session import get_db

from .schemas import CommentCreate, CommentResponse
from . import service

router = APIRouter(prefix="/api/v1/appointments", tags=["comments"])


@router.get("/{appointment_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    appointment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[CommentResponse]:
    try:
        return await service.list_comments(db, appointment_id, current_user)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{appointment_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    appointment_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> CommentResponse:
    try:
        return await service.add_comment(db, appointment_id, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
