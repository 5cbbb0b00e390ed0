"""Appointment service over the SQL repository: expiry filter and storage failures."""

from datetime import date, datetime, time
from uuid import UUID

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from advisor_scheduler.api.v1.appointments import service
from advisor_scheduler.api.v1.appointments.repository import SqlAppointmentRepository
from advisor_scheduler.api.v1.appointments.schemas import AppointmentUpdate
from advisor_scheduler.api.v1.appointments.workflow import Actor
from advisor_scheduler.auth.models import User
from advisor_scheduler.core.enums import AppointmentEvent
from advisor_scheduler.core.exceptions import DatabaseUnavailable
from advisor_scheduler.core.models import Appointment, AppointmentAuditLog

from fakes import RecordingNotifier

NOW = datetime(2025, 3, 2, 10, 0)


class BrokenRepository(SqlAppointmentRepository):
    """SQL repository whose ``failing`` method raises a driver error."""

    def __init__(self, db: AsyncSession, failing: str) -> None:
        super().__init__(db)
        self.failing = failing

    def _check(self, name: str) -> None:
        if name == self.failing:
            raise OperationalError("UPDATE appointments", {}, Exception("database is locked"))

    async def compare_and_set(self, *args, **kwargs):
        self._check("compare_and_set")
        return await super().compare_and_set(*args, **kwargs)

    async def add_audit(self, *args, **kwargs):
        self._check("add_audit")
        return await super().add_audit(*args, **kwargs)

    async def delete(self, *args, **kwargs):
        self._check("delete")
        return await super().delete(*args, **kwargs)


async def _insert(
    db: AsyncSession,
    advisor_id: UUID,
    student_id: UUID,
    status: str = "pending",
    day: date = date(2025, 3, 1),
    at: time = time(9, 0),
) -> UUID:
    appointment = Appointment(
        title="Review",
        date=day,
        time=at,
        location="Room 1",
        status=status,
        advisor_id=advisor_id,
        student_id=student_id,
        created_by=student_id,
    )
    db.add(appointment)
    await db.commit()
    return appointment.id


async def _status(db: AsyncSession, appointment_id: UUID) -> str:
    return (
        await db.execute(select(Appointment.status).where(Appointment.id == appointment_id))
    ).scalar_one()


@pytest.mark.asyncio
async def test_sweep_candidates(db_session: AsyncSession, advisor: User, student: User) -> None:
    advisor_id, student_id = advisor.id, student.id
    awaiting_student = await _insert(db_session, advisor_id, student_id, "pending_student_confirmation")
    awaiting_advisor = await _insert(db_session, advisor_id, student_id, "pending_advisor_confirmation")
    exactly_now = await _insert(db_session, advisor_id, student_id, day=NOW.date(), at=NOW.time())
    minute_ago = await _insert(db_session, advisor_id, student_id, day=NOW.date(), at=time(9, 59))

    repo = SqlAppointmentRepository(db_session)
    assert await service.sweep_expired(repo, NOW) == 2
    assert await service.sweep_expired(repo, NOW) == 0

    assert await _status(db_session, awaiting_student) == "no_response"
    assert await _status(db_session, minute_ago) == "no_response"
    assert await _status(db_session, awaiting_advisor) == "pending_advisor_confirmation"
    assert await _status(db_session, exactly_now) == "pending"

    roles = (
        await db_session.execute(
            select(AppointmentAuditLog.performed_by_role).where(AppointmentAuditLog.action == "EXPIRE")
        )
    ).scalars().all()
    assert roles == ["system", "system"]


@pytest.mark.asyncio
async def test_sweep_limited_to_one_advisor(
    db_session: AsyncSession, advisor: User, other_advisor: User, student: User
) -> None:
    appointment_id = await _insert(db_session, advisor.id, student.id)
    repo = SqlAppointmentRepository(db_session)
    assert await service.sweep_expired(repo, NOW, advisor_id=other_advisor.id) == 0
    assert await _status(db_session, appointment_id) == "pending"
    assert await service.sweep_expired(repo, NOW, advisor_id=advisor.id) == 1


@pytest.mark.asyncio
async def test_audit_write_failure_is_unavailable(db_session: AsyncSession, advisor: User, student: User) -> None:
    advisor_id = advisor.id
    appointment_id = await _insert(db_session, advisor_id, student.id)
    repo = BrokenRepository(db_session, failing="add_audit")
    notifier = RecordingNotifier()

    with pytest.raises(DatabaseUnavailable):
        await service.transition(
            repo, notifier, appointment_id, Actor(id=advisor_id, role="advisor"), AppointmentEvent.CONFIRM
        )

    # The status update was rolled back with the audit row
    assert await _status(db_session, appointment_id) == "pending"
    assert notifier.sent == []


@pytest.mark.asyncio
async def test_notes_write_failure_is_unavailable(db_session: AsyncSession, advisor: User, student: User) -> None:
    advisor_id = advisor.id
    appointment_id = await _insert(db_session, advisor_id, student.id)
    repo = BrokenRepository(db_session, failing="compare_and_set")

    with pytest.raises(DatabaseUnavailable):
        await service.update_fields(
            repo,
            RecordingNotifier(),
            appointment_id,
            Actor(id=advisor_id, role="advisor"),
            AppointmentUpdate(notes="Bring the draft"),
        )


@pytest.mark.asyncio
async def test_delete_failure_is_unavailable(db_session: AsyncSession, advisor: User, student: User) -> None:
    advisor_id = advisor.id
    appointment_id = await _insert(db_session, advisor_id, student.id)
    repo = BrokenRepository(db_session, failing="delete")

    with pytest.raises(DatabaseUnavailable):
        await service.delete_appointment(repo, appointment_id, Actor(id=advisor_id, role="advisor"))
    assert await _status(db_session, appointment_id) == "pending"
