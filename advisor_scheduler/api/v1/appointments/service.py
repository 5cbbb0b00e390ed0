"""Appointment create, transition, edit, delete and expiry sweep with audit."""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from advisor_scheduler.api.v1.comments.service import comment_to_response
from advisor_scheduler.api.v1.notifications.dispatcher import Notifier, dispatch
from advisor_scheduler.core.config import settings
from advisor_scheduler.core.enums import AppointmentEvent, AppointmentStatus, UserRole
from advisor_scheduler.core.exceptions import (
    Conflict,
    DatabaseUnavailable,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from advisor_scheduler.core.models import Appointment

from .access import can_access
from .repository import AppointmentRepository
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    PartySummary,
    ProjectSummary,
)
from .workflow import (
    SCHEDULE_FIELDS,
    SYSTEM_ACTOR,
    Actor,
    Decision,
    can_delete,
    creation_intents,
    decide,
)

logger = logging.getLogger(__name__)


def _to_response(
    a: Appointment,
    users: Dict[UUID, Any],
    projects: Dict[UUID, Any],
    comments: Sequence[Any] = (),
) -> AppointmentResponse:
    advisor = users.get(a.advisor_id)
    student = users.get(a.student_id) if a.student_id else None
    project = projects.get(a.project_id) if a.project_id else None
    return AppointmentResponse(
        id=a.id,
        title=a.title,
        date=a.date,
        time=a.time,
        location=a.location,
        notes=a.notes,
        status=a.status,
        advisor_id=a.advisor_id,
        student_id=a.student_id,
        project_id=a.project_id,
        created_by=a.created_by,
        created_at=a.created_at,
        updated_at=a.updated_at,
        advisor=PartySummary.model_validate(advisor) if advisor else None,
        student=PartySummary.model_validate(student) if student else None,
        project=ProjectSummary.model_validate(project) if project else None,
        comments=[comment_to_response(c) for c in comments],
    )


async def _responses(repo: AppointmentRepository, rows: Sequence[Appointment]) -> List[AppointmentResponse]:
    """Attach advisor/student/project summaries and comment threads, batched per call."""
    users = await repo.get_users([a.advisor_id for a in rows] + [a.student_id for a in rows])
    projects = await repo.get_projects([a.project_id for a in rows])
    threads = await repo.get_comments([a.id for a in rows])
    return [_to_response(a, users, projects, threads.get(a.id, ())) for a in rows]


def _audit_action(event: AppointmentEvent) -> str:
    return event.value.upper().replace("-", "_")


def _clean_text(changes: Dict[str, Any], name: str) -> None:
    if name not in changes:
        return
    value = changes[name]
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    changes[name] = str(value).strip()


def _check_notes(notes: Optional[str]) -> None:
    if notes is not None and len(notes) > settings.notes_max_length:
        raise ValidationError(f"notes must be at most {settings.notes_max_length} characters")


async def _commit(repo: AppointmentRepository) -> None:
    try:
        await repo.commit()
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Commit failed")
        raise DatabaseUnavailable()


async def _get_accessible(
    repo: AppointmentRepository,
    appointment_id: UUID,
    actor: Actor,
) -> Tuple[Appointment, FrozenSet[UUID]]:
    appointment = await repo.get(appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    members = await repo.project_members(appointment.project_id)
    if not can_access(appointment, actor.id, actor.role, members):
        raise NotFound("Appointment not found")
    return appointment, members


async def _apply(
    repo: AppointmentRepository,
    appointment: Appointment,
    decision: Decision,
    actor: Actor,
    values: Dict[str, Any],
    remarks: Optional[str] = None,
) -> None:
    """Write the decided status together with ``values`` only if nobody moved the row meanwhile."""
    # Rollback expires ORM instances, so nothing below may read attributes off ``appointment``
    appointment_id = appointment.id
    try:
        written = await repo.compare_and_set(appointment_id, decision.from_status.value, values)
        if not written:
            await repo.rollback()
            raise Conflict("Appointment was modified by another request. Reload and try again.")
        await repo.add_audit(
            appointment_id,
            _audit_action(decision.event),
            decision.from_status.value,
            decision.to_status.value,
            actor.id,
            actor.role,
            remarks,
        )
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Failed to write transition for appointment %s", appointment_id)
        raise DatabaseUnavailable()
    await _commit(repo)
    logger.info(
        "Appointment %s %s -> %s (%s by %s)",
        appointment_id,
        decision.from_status.value,
        decision.to_status.value,
        decision.event.value,
        actor.role,
    )


def _decide_logged(appointment: Appointment, actor: Actor, event: AppointmentEvent, **kwargs) -> Decision:
    try:
        return decide(appointment, actor, event, **kwargs)
    except (InvalidTransition, Forbidden) as e:
        logger.warning(
            "Rejected %s on appointment %s (status=%s, role=%s): %s",
            event.value,
            appointment.id,
            appointment.status,
            actor.role,
            e.message,
        )
        raise


async def _reload(repo: AppointmentRepository, appointment_id: UUID) -> AppointmentResponse:
    appointment = await repo.get(appointment_id)
    if not appointment:
        raise NotFound("Appointment not found")
    return (await _responses(repo, [appointment]))[0]


async def list_appointments(repo: AppointmentRepository, actor: Actor) -> List[AppointmentResponse]:
    rows = await repo.list_visible(actor.id, actor.role)
    return await _responses(repo, rows)


async def get_appointment(repo: AppointmentRepository, appointment_id: UUID, actor: Actor) -> AppointmentResponse:
    appointment, _ = await _get_accessible(repo, appointment_id, actor)
    return (await _responses(repo, [appointment]))[0]


async def create_appointment(
    repo: AppointmentRepository,
    notifier: Notifier,
    creator: Actor,
    payload: AppointmentCreate,
) -> AppointmentResponse:
    """Create a pending appointment and notify the other party.

    A student books their advisor directly or through one of their projects. An
    advisor books a project, optionally naming one member; without a name the
    appointment is project-wide and any member may accept it.
    """
    fields = payload.model_dump(include={"title", "date", "time", "location", "notes"})
    _clean_text(fields, "title")
    _clean_text(fields, "location")
    _check_notes(fields.get("notes"))

    members: FrozenSet[UUID] = frozenset()
    if creator.is_student:
        student_id = creator.id
        if payload.project_id:
            project = await repo.get_project(payload.project_id)
            if not project:
                raise NotFound("Project not found")
            members = await repo.project_members(project.id)
            if creator.id not in members:
                raise Forbidden("You are not a member of this project")
            if payload.advisor_id and payload.advisor_id != project.advisor_id:
                raise ValidationError("advisor_id does not match the project's advisor")
            advisor_id = project.advisor_id
        elif payload.advisor_id:
            advisor = await repo.get_user(payload.advisor_id)
            if not advisor or advisor.role != UserRole.ADVISOR.value:
                raise NotFound("Advisor not found")
            advisor_id = advisor.id
        else:
            raise ValidationError("advisor_id or project_id is required")
    elif creator.is_advisor:
        if not payload.project_id:
            raise ValidationError("project_id is required")
        project = await repo.get_project(payload.project_id)
        if not project:
            raise NotFound("Project not found")
        if project.advisor_id != creator.id:
            raise Forbidden("You can only schedule appointments for your own projects")
        members = await repo.project_members(project.id)
        if payload.student_id and payload.student_id not in members:
            raise ValidationError("Student is not a member of this project")
        advisor_id = creator.id
        student_id = payload.student_id
    else:
        raise Forbidden("Only students and advisors can create appointments")

    if payload.project_id:
        if project.archived:
            raise ValidationError("Project is archived")

    appointment = Appointment(
        id=uuid.uuid4(),
        title=fields["title"],
        date=fields["date"],
        time=fields["time"],
        location=fields["location"],
        notes=fields.get("notes"),
        status=AppointmentStatus.PENDING.value,
        advisor_id=advisor_id,
        student_id=student_id,
        project_id=payload.project_id,
        created_by=creator.id,
    )
    try:
        await repo.add(appointment)
        await repo.add_audit(
            appointment.id,
            "CREATED",
            None,
            AppointmentStatus.PENDING.value,
            creator.id,
            creator.role,
        )
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Failed to create appointment")
        raise DatabaseUnavailable()
    await _commit(repo)
    logger.info("Appointment %s created by %s %s", appointment.id, creator.role, creator.id)

    await dispatch(notifier, creation_intents(appointment, creator, members))
    return await _reload(repo, appointment.id)


async def transition(
    repo: AppointmentRepository,
    notifier: Notifier,
    appointment_id: UUID,
    actor: Actor,
    event: AppointmentEvent,
    reason: Optional[str] = None,
) -> AppointmentResponse:
    appointment, members = await _get_accessible(repo, appointment_id, actor)
    decision = _decide_logged(appointment, actor, event, members=members, reason=reason)
    await _apply(repo, appointment, decision, actor, decision.changes, remarks=reason)
    await dispatch(notifier, decision.intents)
    return await _reload(repo, appointment_id)


async def update_fields(
    repo: AppointmentRepository,
    notifier: Notifier,
    appointment_id: UUID,
    actor: Actor,
    payload: AppointmentUpdate,
) -> AppointmentResponse:
    """Edit appointment fields.

    Changing title, date, time or location runs the edit event of the workflow.
    Changing only notes never moves the status and is allowed in every state.
    """
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")
    for name in ("title", "location"):
        _clean_text(changes, name)
    for name in ("date", "time"):
        if name in changes and changes[name] is None:
            raise ValidationError(f"{name} is required")
    _check_notes(changes.get("notes"))

    appointment, members = await _get_accessible(repo, appointment_id, actor)
    schedule = {
        name: changes[name]
        for name in SCHEDULE_FIELDS
        if name in changes and changes[name] != getattr(appointment, name)
    }

    if schedule:
        decision = _decide_logged(
            appointment, actor, AppointmentEvent.EDIT, members=members, changes=schedule
        )
        values = dict(decision.changes)
        values.update(schedule)
        if "notes" in changes:
            values["notes"] = changes["notes"]
        await _apply(repo, appointment, decision, actor, values)
        await dispatch(notifier, decision.intents)
        return await _reload(repo, appointment_id)

    if "notes" not in changes:
        return (await _responses(repo, [appointment]))[0]
    if actor.id not in (appointment.advisor_id, appointment.student_id):
        raise Forbidden("Only the advisor or the booked student can edit notes")
    current = appointment.status
    try:
        written = await repo.compare_and_set(appointment_id, current, {"notes": changes["notes"]})
        if not written:
            await repo.rollback()
            raise Conflict("Appointment was modified by another request. Reload and try again.")
        await repo.add_audit(appointment_id, "NOTES_UPDATED", current, current, actor.id, actor.role)
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Failed to update notes for appointment %s", appointment_id)
        raise DatabaseUnavailable()
    await _commit(repo)
    return await _reload(repo, appointment_id)


async def delete_appointment(repo: AppointmentRepository, appointment_id: UUID, actor: Actor) -> None:
    appointment, _ = await _get_accessible(repo, appointment_id, actor)
    if actor.id not in (appointment.advisor_id, appointment.student_id):
        raise Forbidden("Only the advisor or the booked student can delete this appointment")
    if not can_delete(appointment):
        raise InvalidTransition(f"Cannot delete an appointment that is {appointment.status}")
    try:
        await repo.delete(appointment_id)
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Failed to delete appointment %s", appointment_id)
        raise DatabaseUnavailable()
    await _commit(repo)
    logger.info("Appointment %s deleted by %s %s", appointment_id, actor.role, actor.id)


async def sweep_expired(
    repo: AppointmentRepository,
    now: datetime,
    advisor_id: Optional[UUID] = None,
) -> int:
    """Move unanswered appointments whose slot has passed to no_response. Safe to re-run.

    With ``advisor_id`` only that advisor's appointments are considered; the
    scheduled script passes none and sweeps everything.
    """
    candidates = await repo.find_expired(now.date(), now.time(), advisor_id)
    count = 0
    try:
        for appointment in candidates:
            decision = decide(appointment, SYSTEM_ACTOR, AppointmentEvent.EXPIRE)
            if not await repo.compare_and_set(appointment.id, decision.from_status.value, decision.changes):
                # Someone answered it after the scan; leave it alone
                continue
            await repo.add_audit(
                appointment.id,
                _audit_action(decision.event),
                decision.from_status.value,
                decision.to_status.value,
                None,
                SYSTEM_ACTOR.role,
            )
            count += 1
    except SQLAlchemyError:
        await repo.rollback()
        logger.exception("Expiry sweep failed")
        raise DatabaseUnavailable()
    await _commit(repo)
    logger.info("Expiry sweep moved %d appointment(s) to no_response", count)
    return count
