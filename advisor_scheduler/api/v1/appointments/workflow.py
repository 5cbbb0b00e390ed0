"""Appointment status workflow.

Every legal move is one row of ``TRANSITIONS`` keyed by (from status, event, role).
``decide`` looks the row up, runs its ownership guard and returns the new status plus
the notifications to raise. It never touches the database; callers persist the
decision and hand the intents to a notifier afterwards.
"""

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from advisor_scheduler.core.enums import (
    AppointmentEvent,
    AppointmentStatus,
    NotificationType,
    UserRole,
)
from advisor_scheduler.core.exceptions import Forbidden, InvalidTransition


TERMINAL_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.REJECTED,
        AppointmentStatus.COMPLETED,
        AppointmentStatus.FAILED,
        AppointmentStatus.NO_RESPONSE,
        AppointmentStatus.CANCELLED,
    }
)

# Cancelled rows may still be removed; these may not.
UNDELETABLE_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.FAILED,
        AppointmentStatus.REJECTED,
        AppointmentStatus.NO_RESPONSE,
    }
)

EXPIRABLE_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.PENDING_STUDENT_CONFIRMATION,
    }
)

# Fields whose change counts as a reschedule; anything else (notes) is a plain edit.
SCHEDULE_FIELDS: Tuple[str, ...] = ("title", "date", "time", "location")

NOTIFY_STUDENT = "student"
NOTIFY_ADVISOR = "advisor"


@dataclass(frozen=True)
class Actor:
    id: Optional[UUID]
    role: str
    # Display name used in notification text
    name: Optional[str] = None

    @property
    def is_advisor(self) -> bool:
        return self.role == UserRole.ADVISOR.value

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value


SYSTEM_ACTOR = Actor(id=None, role=UserRole.SYSTEM.value)


@dataclass(frozen=True)
class NotificationIntent:
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    appointment_id: Optional[UUID] = None


@dataclass(frozen=True)
class Decision:
    event: AppointmentEvent
    from_status: AppointmentStatus
    to_status: AppointmentStatus
    student_id: Optional[UUID]
    intents: List[NotificationIntent] = field(default_factory=list)

    @property
    def changes(self) -> Dict[str, Any]:
        return {"status": self.to_status.value, "student_id": self.student_id}


Guard = Callable[[Any, Actor, FrozenSet[UUID]], bool]


def _owns(appointment, actor: Actor, members: FrozenSet[UUID]) -> bool:
    return actor.id is not None and actor.id == appointment.advisor_id


def _bound_student(appointment, actor: Actor, members: FrozenSet[UUID]) -> bool:
    return actor.id is not None and actor.id == appointment.student_id


def _participant_student(appointment, actor: Actor, members: FrozenSet[UUID]) -> bool:
    """Bound student, or any roster member while the appointment is unclaimed."""
    if _bound_student(appointment, actor, members):
        return True
    return appointment.student_id is None and actor.id in members


def _invited_student(appointment, actor: Actor, members: FrozenSet[UUID]) -> bool:
    """Student who can answer an advisor's invitation (not their own request)."""
    if appointment.student_id is None:
        return actor.id in members
    return actor.id == appointment.student_id and appointment.created_by != actor.id


@dataclass(frozen=True)
class Transition:
    from_status: AppointmentStatus
    event: AppointmentEvent
    role: UserRole
    to_status: AppointmentStatus
    guard: Optional[Guard] = None
    notify: Optional[str] = None
    notification_type: Optional[NotificationType] = None
    # Bind the acting student to a project-wide appointment
    claims: bool = False


S = AppointmentStatus
E = AppointmentEvent
R = UserRole
N = NotificationType

_NON_TERMINAL = (S.PENDING, S.CONFIRMED, S.PENDING_STUDENT_CONFIRMATION, S.PENDING_ADVISOR_CONFIRMATION)

_ROWS: List[Transition] = [
    Transition(S.PENDING, E.CONFIRM, R.ADVISOR, S.CONFIRMED, _owns, NOTIFY_STUDENT, N.APPOINTMENT_CONFIRMED),
    Transition(S.PENDING, E.REJECT, R.ADVISOR, S.REJECTED, _owns, NOTIFY_STUDENT, N.APPOINTMENT_REJECTED),
    Transition(S.PENDING, E.ACCEPT, R.STUDENT, S.CONFIRMED, _invited_student, NOTIFY_ADVISOR, N.APPOINTMENT_ACCEPTED, claims=True),
    Transition(S.PENDING, E.DECLINE, R.STUDENT, S.REJECTED, _invited_student, NOTIFY_ADVISOR, N.APPOINTMENT_DECLINED),
    Transition(S.PENDING, E.EDIT, R.ADVISOR, S.PENDING, _owns),
    Transition(S.PENDING, E.EDIT, R.STUDENT, S.PENDING, _bound_student),
    Transition(S.CONFIRMED, E.EDIT, R.ADVISOR, S.PENDING_STUDENT_CONFIRMATION, _owns, NOTIFY_STUDENT, N.APPOINTMENT_CHANGED),
    Transition(S.CONFIRMED, E.EDIT, R.STUDENT, S.PENDING_ADVISOR_CONFIRMATION, _bound_student, NOTIFY_ADVISOR, N.APPOINTMENT_CHANGED),
    Transition(S.PENDING_STUDENT_CONFIRMATION, E.EDIT, R.ADVISOR, S.PENDING_STUDENT_CONFIRMATION, _owns, NOTIFY_STUDENT, N.APPOINTMENT_CHANGED),
    Transition(S.PENDING_ADVISOR_CONFIRMATION, E.EDIT, R.STUDENT, S.PENDING_ADVISOR_CONFIRMATION, _bound_student, NOTIFY_ADVISOR, N.APPOINTMENT_CHANGED),
    Transition(S.CONFIRMED, E.COMPLETE, R.ADVISOR, S.COMPLETED, _owns),
    Transition(S.CONFIRMED, E.COMPLETE, R.STUDENT, S.COMPLETED, _participant_student),
    Transition(S.CONFIRMED, E.FAIL, R.ADVISOR, S.FAILED, _owns),
    Transition(S.CONFIRMED, E.FAIL, R.STUDENT, S.FAILED, _participant_student),
    Transition(S.PENDING_STUDENT_CONFIRMATION, E.CONFIRM_CHANGES, R.STUDENT, S.CONFIRMED, _participant_student, NOTIFY_ADVISOR, N.CHANGES_CONFIRMED),
    Transition(S.PENDING_ADVISOR_CONFIRMATION, E.CONFIRM_CHANGES, R.ADVISOR, S.CONFIRMED, _owns, NOTIFY_STUDENT, N.CHANGES_CONFIRMED),
    Transition(S.PENDING, E.EXPIRE, R.SYSTEM, S.NO_RESPONSE),
    Transition(S.PENDING_STUDENT_CONFIRMATION, E.EXPIRE, R.SYSTEM, S.NO_RESPONSE),
]
for _status in _NON_TERMINAL:
    _ROWS.append(Transition(_status, E.CANCEL, R.ADVISOR, S.CANCELLED, _owns))
    _ROWS.append(Transition(_status, E.CANCEL, R.STUDENT, S.CANCELLED, _bound_student))

TRANSITIONS: Dict[Tuple[AppointmentStatus, AppointmentEvent, UserRole], Transition] = {
    (row.from_status, row.event, row.role): row for row in _ROWS
}

_EVENTS_BY_STATUS: Dict[AppointmentStatus, Set[AppointmentEvent]] = {}
for _row in _ROWS:
    _EVENTS_BY_STATUS.setdefault(_row.from_status, set()).add(_row.event)


_MESSAGES: Dict[NotificationType, Tuple[str, str]] = {
    N.APPOINTMENT_REQUEST: ("New appointment request", '{actor} requested "{title}" on {date} at {time}.'),
    N.APPOINTMENT_CONFIRMED: ("Appointment confirmed", '{actor} confirmed "{title}" on {date} at {time}.'),
    N.APPOINTMENT_REJECTED: ("Appointment rejected", '{actor} rejected "{title}" on {date} at {time}.'),
    N.APPOINTMENT_ACCEPTED: ("Appointment accepted", '{actor} accepted "{title}" on {date} at {time}.'),
    N.APPOINTMENT_DECLINED: ("Appointment declined", '{actor} declined "{title}" on {date} at {time}.'),
    N.APPOINTMENT_CHANGED: (
        "Appointment changed",
        '{actor} moved "{title}" to {date} at {time}, {location}. Please confirm the new details.',
    ),
    N.CHANGES_CONFIRMED: ("Changes confirmed", '{actor} confirmed the new details of "{title}" on {date} at {time}.'),
}


def actor_label(actor: Optional[Actor]) -> str:
    """Role plus display name, e.g. "Student Sam Lee"; just the role when no name is known."""
    if actor is None:
        return "Someone"
    role = actor.role.capitalize()
    if actor.name and actor.name.strip():
        return f"{role} {actor.name.strip()}"
    return role


def _format_time(value) -> str:
    if value is None:
        return ""
    return value.strftime("%H:%M") if hasattr(value, "strftime") else str(value)


def build_intents(
    appointment,
    notification_type: NotificationType,
    recipients: Iterable[UUID],
    reason: Optional[str] = None,
    actor: Optional[Actor] = None,
) -> List[NotificationIntent]:
    title, template = _MESSAGES[notification_type]
    message = template.format(
        actor=actor_label(actor),
        title=appointment.title,
        date=appointment.date,
        time=_format_time(appointment.time),
        location=appointment.location,
    )
    if reason and reason.strip():
        message = f"{message} Reason: {reason.strip()}"
    return [
        NotificationIntent(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            appointment_id=appointment.id,
        )
        for user_id in recipients
        if user_id is not None
    ]


def student_recipients(appointment, members: FrozenSet[UUID]) -> List[UUID]:
    if appointment.student_id is not None:
        return [appointment.student_id]
    return sorted(members, key=str)


def creation_intents(appointment, creator: Actor, members: FrozenSet[UUID]) -> List[NotificationIntent]:
    """Notify the other side of a freshly created appointment."""
    if creator.is_student:
        recipients = [appointment.advisor_id]
    else:
        recipients = student_recipients(appointment, members)
    return build_intents(appointment, N.APPOINTMENT_REQUEST, recipients, actor=creator)


def allowed_events(status: AppointmentStatus) -> Set[AppointmentEvent]:
    return set(_EVENTS_BY_STATUS.get(status, set()))


def decide(
    appointment,
    actor: Actor,
    event: AppointmentEvent,
    members: FrozenSet[UUID] = frozenset(),
    reason: Optional[str] = None,
    changes: Optional[Dict[str, Any]] = None,
) -> Decision:
    """Resolve one workflow step without side effects.

    Raises InvalidTransition when no row exists for (status, event) at all, and
    Forbidden when rows exist but none fits the actor's role or ownership.
    ``changes`` are the field edits riding along with the event; notification
    text is rendered from them so recipients see the new details.
    """
    current = AppointmentStatus(appointment.status)
    if event not in _EVENTS_BY_STATUS.get(current, ()):
        raise InvalidTransition(f"Cannot {event.value} an appointment that is {current.value}")

    try:
        role = UserRole(actor.role)
    except ValueError:
        raise Forbidden(f"Role '{actor.role}' cannot {event.value} appointments")

    row = TRANSITIONS.get((current, event, role))
    if row is None:
        raise Forbidden(f"A {role.value} cannot {event.value} an appointment that is {current.value}")
    if row.guard is not None and not row.guard(appointment, actor, members):
        raise Forbidden(f"You are not allowed to {event.value} this appointment")

    student_id = appointment.student_id
    if row.claims and student_id is None:
        student_id = actor.id

    intents: List[NotificationIntent] = []
    if row.notification_type is not None:
        if row.notify == NOTIFY_ADVISOR:
            recipients = [appointment.advisor_id]
        elif student_id is not None:
            recipients = [student_id]
        else:
            recipients = student_recipients(appointment, members)
        subject = appointment
        if changes:
            subject = SimpleNamespace(
                **{name: getattr(appointment, name) for name in ("id",) + SCHEDULE_FIELDS},
            )
            for name, value in changes.items():
                if name in SCHEDULE_FIELDS:
                    setattr(subject, name, value)
        intents = build_intents(subject, row.notification_type, recipients, reason, actor)

    return Decision(
        event=event,
        from_status=current,
        to_status=row.to_status,
        student_id=student_id,
        intents=intents,
    )


def can_delete(appointment) -> bool:
    return AppointmentStatus(appointment.status) not in UNDELETABLE_STATUSES
