"""Append-only comment thread on an appointment, visible to everyone who can see the appointment."""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.api.v1.appointments.access import can_access
from advisor_scheduler.api.v1.appointments.repository import SqlAppointmentRepository
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.exceptions import DatabaseUnavailable, NotFound, ValidationError
from advisor_scheduler.core.models import Appointment, Comment

from .schemas import CommentCreate, CommentResponse


def comment_to_response(c: Comment) -> CommentResponse:
    return CommentResponse(
        id=c.id,
        appointment_id=c.appointment_id,
        user_id=c.user_id,
        content=c.content,
        first_name=c.author.first_name,
        last_name=c.author.last_name,
        role=c.author.role,
        created_at=c.created_at,
    )


async def _get_accessible_appointment(
    db: AsyncSession,
    appointment_id: UUID,
    current_user: CurrentUser,
) -> Appointment:
    repo = SqlAppointmentRepository(db)
    appointment = await repo.get(appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    members = await repo.project_members(appointment.project_id)
    if not can_access(appointment, current_user.id, current_user.role, members):
        raise NotFound("Appointment not found")
    return appointment


async def list_comments(
    db: AsyncSession,
    appointment_id: UUID,
    current_user: CurrentUser,
) -> List[CommentResponse]:
    await _get_accessible_appointment(db, appointment_id, current_user)
    result = await db.execute(
        select(Comment)
        .where(Comment.appointment_id == appointment_id)
        .order_by(Comment.created_at.asc())
    )
    return [comment_to_response(c) for c in result.scalars().all()]


async def add_comment(
    db: AsyncSession,
    appointment_id: UUID,
    current_user: CurrentUser,
    payload: CommentCreate,
) -> CommentResponse:
    content = payload.content.strip()
    if not content:
        raise ValidationError("content is required")
    await _get_accessible_appointment(db, appointment_id, current_user)

    comment = Comment(appointment_id=appointment_id, user_id=current_user.id, content=content)
    db.add(comment)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        raise DatabaseUnavailable()
    result = await db.execute(
        select(Comment).where(Comment.id == comment.id).execution_options(populate_existing=True)
    )
    return comment_to_response(result.scalar_one())
