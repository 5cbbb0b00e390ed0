"""Best-effort delivery of notification intents after a workflow step commits."""

import logging
from typing import Iterable, Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.core.models import Notification

from advisor_scheduler.api.v1.appointments.workflow import NotificationIntent

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def create(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        appointment_id: Optional[UUID] = None,
    ) -> None: ...


class DbNotifier:
    """Writes each notification as its own committed row."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: str,
        appointment_id: Optional[UUID] = None,
    ) -> None:
        self.db.add(
            Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                appointment_id=appointment_id,
            )
        )
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise


async def dispatch(notifier: Notifier, intents: Iterable[NotificationIntent]) -> int:
    """Deliver intents one by one. A failed delivery is logged and skipped."""
    delivered = 0
    for intent in intents:
        try:
            await notifier.create(
                intent.user_id,
                intent.type.value,
                intent.title,
                intent.message,
                intent.appointment_id,
            )
        except Exception:
            logger.exception(
                "Notification %s for user %s (appointment %s) was not delivered",
                intent.type.value,
                intent.user_id,
                intent.appointment_id,
            )
            continue
        delivered += 1
    return delivered
