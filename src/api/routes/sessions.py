"""
Session API routes.

Endpoints for booking sessions and driving their lifecycle. Handlers only
translate HTTP to service calls; errors are mapped by exception_handlers.
"""

from fastapi import APIRouter, status
import structlog

from src.api.dependencies import ActorDep, BookingServiceDep, RatingServiceDep
from src.api.schemas import (
    CancelRequest,
    RateRequest,
    RescheduleRequest,
    SessionListResponse,
    TransitionRequest,
)
from src.domain.models.booking import BookingRequest
from src.domain.models.session import (
    Session,
    SessionFilter,
    SessionPage,
    SessionStatistics,
)

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=Session, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: BookingRequest, actor: ActorDep, service: BookingServiceDep
):
    """Book a session with a named interpreter or the best available one."""
    return await service.create_session(request, actor=actor)


@router.get("/upcoming", response_model=SessionListResponse)
async def upcoming_sessions(actor: ActorDep, service: BookingServiceDep):
    """Caller's REQUESTED/CONFIRMED sessions through the end of tomorrow."""
    sessions = await service.get_upcoming_sessions(actor)
    return SessionListResponse(sessions=sessions, total=len(sessions))


@router.post("/search", response_model=SessionPage)
async def search_sessions(
    criteria: SessionFilter, actor: ActorDep, service: BookingServiceDep
):
    """Filtered, paged listing of the caller's sessions (all sessions for admins)."""
    return await service.list_sessions(criteria, actor)


@router.get("/statistics", response_model=SessionStatistics)
async def session_statistics(actor: ActorDep, service: BookingServiceDep):
    return await service.get_session_statistics(actor)


@router.get("/{session_id}", response_model=Session)
async def get_session(session_id: str, actor: ActorDep, service: BookingServiceDep):
    return await service.get_session(session_id, actor=actor)


@router.post("/{session_id}/status", response_model=Session)
async def transition_session(
    session_id: str,
    body: TransitionRequest,
    actor: ActorDep,
    service: BookingServiceDep,
):
    """Move a session to another status (confirm, start, complete, cancel)."""
    return await service.transition_status(
        session_id, body.status, actor, reason=body.reason, category=body.category
    )


@router.post("/{session_id}/reschedule", response_model=Session)
async def reschedule_session(
    session_id: str,
    body: RescheduleRequest,
    actor: ActorDep,
    service: BookingServiceDep,
):
    return await service.reschedule(
        session_id, body.new_start, body.new_duration, body.reason, actor
    )


@router.post("/{session_id}/cancel", response_model=Session)
async def cancel_session(
    session_id: str,
    body: CancelRequest,
    actor: ActorDep,
    service: BookingServiceDep,
):
    """Cancel within the notice window."""
    return await service.cancel(session_id, body.reason, body.category, actor)


@router.post("/{session_id}/rating", response_model=Session)
async def rate_session(
    session_id: str,
    body: RateRequest,
    actor: ActorDep,
    service: RatingServiceDep,
):
    return await service.rate(session_id, body.submission(), body.rater_role, actor)
