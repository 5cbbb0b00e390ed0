from typing import List
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.core.exceptions import NotFound
from advisor_scheduler.core.models import Notification

from .schemas import NotificationResponse


async def list_notifications(db: AsyncSession, user_id: UUID) -> List[NotificationResponse]:
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    return [NotificationResponse.model_validate(n) for n in result.scalars().all()]


async def mark_read(db: AsyncSession, user_id: UUID, notification_id: UUID) -> NotificationResponse:
    """Only the owner may flip the flag; anyone else gets NotFound."""
    notification = await db.get(Notification, notification_id)
    if not notification or notification.user_id != user_id:
        raise NotFound("Notification not found")
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return NotificationResponse.model_validate(notification)


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
