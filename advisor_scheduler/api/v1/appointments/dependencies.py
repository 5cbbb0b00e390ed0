from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.api.v1.notifications.dispatcher import DbNotifier
from advisor_scheduler.db.session import get_db

from .repository import SqlAppointmentRepository


def get_repository(db: AsyncSession = Depends(get_db)) -> SqlAppointmentRepository:
    return SqlAppointmentRepository(db)


def get_notifier(db: AsyncSession = Depends(get_db)) -> DbNotifier:
    return DbNotifier(db)
