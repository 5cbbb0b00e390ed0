"""Storage seam for the appointment service.

``AppointmentRepository`` is what the service depends on; ``SqlAppointmentRepository``
implements it over an ``AsyncSession``. Tests plug in an in-memory implementation.
"""

from datetime import date, time
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Protocol
from uuid import UUID

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.core.enums import UserRole
from advisor_scheduler.core.models import (
    Appointment,
    AppointmentAuditLog,
    Comment,
    Project,
    ProjectStudent,
    User,
)

from .workflow import EXPIRABLE_STATUSES


class AppointmentRepository(Protocol):
    async def get(self, appointment_id: UUID) -> Optional[Appointment]: ...

    async def get_user(self, user_id: UUID) -> Optional[User]: ...

    async def get_users(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]: ...

    async def get_project(self, project_id: UUID) -> Optional[Project]: ...

    async def get_projects(self, project_ids: Iterable[UUID]) -> Dict[UUID, Project]: ...

    async def get_comments(self, appointment_ids: Iterable[UUID]) -> Dict[UUID, List[Comment]]: ...

    async def project_members(self, project_id: Optional[UUID]) -> FrozenSet[UUID]: ...

    async def list_visible(self, user_id: UUID, role: str) -> List[Appointment]: ...

    async def add(self, appointment: Appointment) -> Appointment: ...

    async def compare_and_set(self, appointment_id: UUID, expected_status: str, values: Dict[str, Any]) -> bool: ...

    async def delete(self, appointment_id: UUID) -> None: ...

    async def find_expired(
        self, today: date, now_time: time, advisor_id: Optional[UUID] = None
    ) -> List[Appointment]: ...

    async def add_audit(
        self,
        appointment_id: UUID,
        action: str,
        from_status: Optional[str],
        to_status: str,
        performed_by: Optional[UUID],
        performed_by_role: Optional[str],
        remarks: Optional[str] = None,
    ) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


def _distinct(ids: Iterable[Optional[UUID]]) -> List[UUID]:
    return list({i for i in ids if i is not None})


class SqlAppointmentRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, appointment_id: UUID) -> Optional[Appointment]:
        # populate_existing: a compare_and_set issued through Core leaves the identity map stale
        return await self.db.get(Appointment, appointment_id, populate_existing=True)

    async def get_user(self, user_id: UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_users(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        ids = _distinct(user_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u for u in result.scalars().all()}

    async def get_project(self, project_id: UUID) -> Optional[Project]:
        return await self.db.get(Project, project_id)

    async def get_projects(self, project_ids: Iterable[UUID]) -> Dict[UUID, Project]:
        ids = _distinct(project_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Project).where(Project.id.in_(ids)))
        return {p.id: p for p in result.scalars().all()}

    async def get_comments(self, appointment_ids: Iterable[UUID]) -> Dict[UUID, List[Comment]]:
        ids = _distinct(appointment_ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(Comment).where(Comment.appointment_id.in_(ids)).order_by(Comment.created_at.asc())
        )
        threads: Dict[UUID, List[Comment]] = {}
        for comment in result.scalars().all():
            threads.setdefault(comment.appointment_id, []).append(comment)
        return threads

    async def project_members(self, project_id: Optional[UUID]) -> FrozenSet[UUID]:
        if project_id is None:
            return frozenset()
        result = await self.db.execute(
            select(ProjectStudent.student_id).where(ProjectStudent.project_id == project_id)
        )
        return frozenset(result.scalars().all())

    async def list_visible(self, user_id: UUID, role: str) -> List[Appointment]:
        q = select(Appointment)
        if role == UserRole.ADVISOR.value:
            q = q.where(Appointment.advisor_id == user_id)
        else:
            member_projects = select(ProjectStudent.project_id).where(ProjectStudent.student_id == user_id)
            q = q.where(
                or_(
                    Appointment.student_id == user_id,
                    and_(
                        Appointment.student_id.is_(None),
                        Appointment.project_id.in_(member_projects),
                    ),
                )
            )
        q = q.order_by(Appointment.date.desc(), Appointment.time.desc())
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def add(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        await self.db.flush()
        return appointment

    async def compare_and_set(self, appointment_id: UUID, expected_status: str, values: Dict[str, Any]) -> bool:
        """Write ``values`` only if the row still has ``expected_status``."""
        result = await self.db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def delete(self, appointment_id: UUID) -> None:
        await self.db.execute(delete(Appointment).where(Appointment.id == appointment_id))

    async def find_expired(
        self, today: date, now_time: time, advisor_id: Optional[UUID] = None
    ) -> List[Appointment]:
        """Expirable rows whose slot is strictly before (today, now_time)."""
        q = select(Appointment).where(
            Appointment.status.in_([s.value for s in EXPIRABLE_STATUSES]),
            or_(
                Appointment.date < today,
                and_(Appointment.date == today, Appointment.time < now_time),
            ),
        )
        if advisor_id is not None:
            q = q.where(Appointment.advisor_id == advisor_id)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def add_audit(
        self,
        appointment_id: UUID,
        action: str,
        from_status: Optional[str],
        to_status: str,
        performed_by: Optional[UUID],
        performed_by_role: Optional[str],
        remarks: Optional[str] = None,
    ) -> None:
        self.db.add(
            AppointmentAuditLog(
                appointment_id=appointment_id,
                action=action,
                from_status=from_status,
                to_status=to_status,
                performed_by=performed_by,
                performed_by_role=performed_by_role,
                remarks=remarks,
            )
        )

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
