"""Appointment service against the in-memory repository and a recording notifier."""

from datetime import date, datetime, time

import pytest

from advisor_scheduler.api.v1.appointments import service
from advisor_scheduler.api.v1.appointments.schemas import AppointmentCreate, AppointmentUpdate
from advisor_scheduler.api.v1.appointments.workflow import Actor
from advisor_scheduler.core.enums import AppointmentEvent, AppointmentStatus
from advisor_scheduler.core.exceptions import (
    Conflict,
    Forbidden,
    InvalidTransition,
    NotFound,
    ValidationError,
)

from fakes import FailingNotifier, InMemoryAppointmentRepository, RecordingNotifier


@pytest.fixture()
def repo() -> InMemoryAppointmentRepository:
    return InMemoryAppointmentRepository()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def people(repo: InMemoryAppointmentRepository):
    advisor_id = repo.add_user("advisor")
    student_id = repo.add_user("student")
    member_id = repo.add_user("student")
    project_id = repo.add_project(advisor_id, [student_id, member_id])
    return {
        "advisor": Actor(id=advisor_id, role="advisor"),
        "student": Actor(id=student_id, role="student"),
        "member": Actor(id=member_id, role="student"),
        "project_id": project_id,
    }


def booking(**overrides) -> AppointmentCreate:
    fields = dict(title="Progress review", date=date(2025, 3, 1), time=time(10, 0), location="Room 101")
    fields.update(overrides)
    return AppointmentCreate(**fields)


@pytest.mark.asyncio
async def test_concrete_scenario(repo, notifier, people) -> None:
    advisor, student = people["advisor"], people["student"]
    created = await service.create_appointment(repo, notifier, student, booking(advisor_id=advisor.id))
    assert created.status == "pending"
    assert created.student_id == student.id

    confirmed = await service.transition(repo, notifier, created.id, advisor, AppointmentEvent.CONFIRM)
    assert confirmed.status == "confirmed"
    assert len(notifier.to(student.id)) == 1

    edited = await service.update_fields(repo, notifier, created.id, advisor, AppointmentUpdate(location="Lab 3"))
    assert edited.status == "pending_student_confirmation"
    assert edited.location == "Lab 3"

    reconfirmed = await service.transition(repo, notifier, created.id, student, AppointmentEvent.CONFIRM_CHANGES)
    assert reconfirmed.status == "confirmed"

    completed = await service.transition(repo, notifier, created.id, student, AppointmentEvent.COMPLETE)
    assert completed.status == "completed"

    with pytest.raises(InvalidTransition):
        await service.delete_appointment(repo, created.id, advisor)

    noted = await service.update_fields(repo, notifier, created.id, student, AppointmentUpdate(notes="Went well"))
    assert noted.status == "completed"
    assert noted.notes == "Went well"

    actions = [entry["action"] for entry in repo.audit]
    assert actions == ["CREATED", "CONFIRM", "EDIT", "CONFIRM_CHANGES", "COMPLETE", "NOTES_UPDATED"]


@pytest.mark.asyncio
async def test_student_booking_notifies_advisor(repo, notifier, people) -> None:
    advisor, student = people["advisor"], people["student"]
    created = await service.create_appointment(repo, notifier, student, booking(advisor_id=advisor.id))
    sent = notifier.to(advisor.id)
    assert len(sent) == 1
    assert sent[0]["type"] == "appointment_request"
    assert sent[0]["appointment_id"] == created.id


@pytest.mark.asyncio
async def test_student_booking_through_project(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(project_id=people["project_id"])
    )
    assert created.advisor_id == people["advisor"].id
    assert created.project_id == people["project_id"]


@pytest.mark.asyncio
async def test_student_booking_requires_target(repo, notifier, people) -> None:
    with pytest.raises(ValidationError):
        await service.create_appointment(repo, notifier, people["student"], booking())


@pytest.mark.asyncio
async def test_blank_title_rejected(repo, notifier, people) -> None:
    with pytest.raises(ValidationError):
        await service.create_appointment(
            repo, notifier, people["student"], booking(title="   ", advisor_id=people["advisor"].id)
        )


@pytest.mark.asyncio
async def test_advisor_project_wide_booking_notifies_all_members(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["advisor"], booking(project_id=people["project_id"])
    )
    assert created.student_id is None
    assert {n["user_id"] for n in notifier.sent} == {people["student"].id, people["member"].id}


@pytest.mark.asyncio
async def test_advisor_cannot_book_foreign_project(repo, notifier, people) -> None:
    other_advisor = Actor(id=repo.add_user("advisor"), role="advisor")
    with pytest.raises(Forbidden):
        await service.create_appointment(repo, notifier, other_advisor, booking(project_id=people["project_id"]))


@pytest.mark.asyncio
async def test_member_accepts_project_wide(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["advisor"], booking(project_id=people["project_id"])
    )
    accepted = await service.transition(repo, notifier, created.id, people["member"], AppointmentEvent.ACCEPT)
    assert accepted.status == "confirmed"
    assert accepted.student_id == people["member"].id

    # Once claimed it drops out of the other member's list
    visible = await service.list_appointments(repo, people["student"])
    assert created.id not in [a.id for a in visible]


@pytest.mark.asyncio
async def test_outsider_gets_not_found(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    outsider = Actor(id=repo.add_user("student"), role="student")
    with pytest.raises(NotFound):
        await service.transition(repo, notifier, created.id, outsider, AppointmentEvent.CANCEL)


@pytest.mark.asyncio
async def test_stale_status_raises_conflict(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    repo.race_to = AppointmentStatus.CANCELLED.value
    with pytest.raises(Conflict):
        await service.transition(repo, notifier, created.id, people["advisor"], AppointmentEvent.CONFIRM)
    assert repo.appointments[created.id].status == "cancelled"
    assert repo.rollbacks == 1


@pytest.mark.asyncio
async def test_failed_notification_does_not_fail_transition(repo, people) -> None:
    notifier = FailingNotifier()
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    confirmed = await service.transition(repo, notifier, created.id, people["advisor"], AppointmentEvent.CONFIRM)
    assert confirmed.status == "confirmed"


@pytest.mark.asyncio
async def test_schedule_edit_of_terminal_appointment_is_invalid(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    await service.transition(repo, notifier, created.id, people["advisor"], AppointmentEvent.REJECT)
    with pytest.raises(InvalidTransition):
        await service.update_fields(
            repo, notifier, created.id, people["advisor"], AppointmentUpdate(time=time(11, 0))
        )


@pytest.mark.asyncio
async def test_unchanged_schedule_fields_do_not_transition(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    await service.transition(repo, notifier, created.id, people["advisor"], AppointmentEvent.CONFIRM)
    same = await service.update_fields(
        repo, notifier, created.id, people["advisor"], AppointmentUpdate(location="Room 101", notes="bring draft")
    )
    assert same.status == "confirmed"
    assert same.notes == "bring draft"


@pytest.mark.asyncio
async def test_empty_update_rejected(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    with pytest.raises(ValidationError):
        await service.update_fields(repo, notifier, created.id, people["student"], AppointmentUpdate())


@pytest.mark.asyncio
async def test_delete_pending_removes_row(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    await service.delete_appointment(repo, created.id, people["student"])
    assert created.id not in repo.appointments


@pytest.mark.asyncio
async def test_delete_cancelled_allowed(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    await service.transition(repo, notifier, created.id, people["student"], AppointmentEvent.CANCEL)
    await service.delete_appointment(repo, created.id, people["advisor"])
    assert created.id not in repo.appointments


@pytest.mark.asyncio
async def test_sweep_is_idempotent_and_silent(repo, notifier, people) -> None:
    advisor, student = people["advisor"], people["student"]
    past = await service.create_appointment(
        repo, notifier, student, booking(advisor_id=advisor.id, date=date(2025, 3, 1), time=time(9, 0))
    )
    earlier_today = await service.create_appointment(
        repo, notifier, student, booking(advisor_id=advisor.id, date=date(2025, 3, 2), time=time(8, 0))
    )
    later_today = await service.create_appointment(
        repo, notifier, student, booking(advisor_id=advisor.id, date=date(2025, 3, 2), time=time(18, 0))
    )
    confirmed = await service.create_appointment(
        repo, notifier, student, booking(advisor_id=advisor.id, date=date(2025, 2, 1))
    )
    await service.transition(repo, notifier, confirmed.id, advisor, AppointmentEvent.CONFIRM)
    sent_before = len(notifier.sent)

    now = datetime(2025, 3, 2, 12, 0)
    assert await service.sweep_expired(repo, now) == 2
    assert await service.sweep_expired(repo, now) == 0

    assert repo.appointments[past.id].status == "no_response"
    assert repo.appointments[earlier_today.id].status == "no_response"
    assert repo.appointments[later_today.id].status == "pending"
    assert repo.appointments[confirmed.id].status == "confirmed"
    assert len(notifier.sent) == sent_before


@pytest.mark.asyncio
async def test_response_carries_party_summaries(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(project_id=people["project_id"])
    )
    assert created.advisor.id == people["advisor"].id
    assert created.student.id == people["student"].id
    assert created.project.id == people["project_id"]


@pytest.mark.asyncio
async def test_sweep_scoped_to_advisor(repo, notifier, people) -> None:
    created = await service.create_appointment(
        repo, notifier, people["student"], booking(advisor_id=people["advisor"].id)
    )
    other_advisor_id = repo.add_user("advisor")
    now = datetime(2025, 3, 2, 12, 0)
    assert await service.sweep_expired(repo, now, advisor_id=other_advisor_id) == 0
    assert repo.appointments[created.id].status == "pending"
