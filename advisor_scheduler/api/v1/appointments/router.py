from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from advisor_scheduler.api.v1.notifications.dispatcher import Notifier
from advisor_scheduler.auth.dependencies import get_current_user
from advisor_scheduler.auth.rbac import require_role
from advisor_scheduler.auth.schemas import CurrentUser
from advisor_scheduler.core.enums import AppointmentEvent, UserRole
from advisor_scheduler.core.exceptions import ServiceError

from . import service
from .dependencies import get_notifier, get_repository
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentUpdate, SweepResponse, TransitionRequest
from .workflow import Actor

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])

# Edits go through PATCH and expiry through the sweep
ROUTABLE_EVENTS = frozenset(AppointmentEvent) - {AppointmentEvent.EDIT, AppointmentEvent.EXPIRE}


def _actor(current_user: CurrentUser) -> Actor:
    return Actor(
        id=current_user.id,
        role=current_user.role,
        name=f"{current_user.first_name} {current_user.last_name}",
    )


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    repo: AppointmentRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AppointmentResponse]:
    """Advisors: appointments they advise. Students: their own plus open project-wide ones."""
    return await service.list_appointments(repo, _actor(current_user))


@router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_appointment(
    payload: AppointmentCreate,
    repo: AppointmentRepository = Depends(get_repository),
    notifier: Notifier = Depends(get_notifier),
    current_user: CurrentUser = Depends(get_current_user),
) -> AppointmentResponse:
    try:
        return await service.create_appointment(repo, notifier, _actor(current_user), payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/sweep-expired", response_model=SweepResponse)
async def sweep_expired(
    repo: AppointmentRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(require_role(UserRole.ADVISOR.value)),
) -> SweepResponse:
    """Mark the caller's unanswered appointments whose time has passed as no_response.

    The scheduled script sweeps every advisor.
    """
    try:
        count = await service.sweep_expired(repo, datetime.now(), advisor_id=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return SweepResponse(count=count)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    repo: AppointmentRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> AppointmentResponse:
    try:
        return await service.get_appointment(repo, appointment_id, _actor(current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    payload: AppointmentUpdate,
    repo: AppointmentRepository = Depends(get_repository),
    notifier: Notifier = Depends(get_notifier),
    current_user: CurrentUser = Depends(get_current_user),
) -> AppointmentResponse:
    """Change title/date/time/location (may require the other side to re-confirm) or notes."""
    try:
        return await service.update_fields(repo, notifier, appointment_id, _actor(current_user), payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: UUID,
    repo: AppointmentRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        await service.delete_appointment(repo, appointment_id, _actor(current_user))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{appointment_id}/{event}", response_model=AppointmentResponse)
async def transition_appointment(
    appointment_id: UUID,
    event: AppointmentEvent,
    payload: Optional[TransitionRequest] = Body(None),
    repo: AppointmentRepository = Depends(get_repository),
    notifier: Notifier = Depends(get_notifier),
    current_user: CurrentUser = Depends(get_current_user),
) -> AppointmentResponse:
    """confirm, reject, accept, decline, confirm-changes, complete, fail or cancel."""
    if event not in ROUTABLE_EVENTS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported event '{event.value}'")
    reason = payload.reason if payload else None
    try:
        return await service.transition(repo, notifier, appointment_id, _actor(current_user), event, reason=reason)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
