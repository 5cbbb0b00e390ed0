from typing import FrozenSet, Optional
from uuid import UUID

from advisor_scheduler.core.enums import UserRole


def can_access(
    appointment,
    actor_id: Optional[UUID],
    actor_role: str,
    members: FrozenSet[UUID] = frozenset(),
) -> bool:
    """Advisor of the appointment, its bound student, or a member of its project roster."""
    if actor_id is None:
        return False
    if actor_role == UserRole.ADVISOR.value:
        return actor_id == appointment.advisor_id
    if actor_role == UserRole.STUDENT.value:
        if actor_id == appointment.student_id:
            return True
        return appointment.project_id is not None and actor_id in members
    return False
