"""
Interpreter API routes.

Registration, profile maintenance, matching and statistics.
"""

from fastapi import APIRouter, status

from src.api.dependencies import ActorDep, InterpreterServiceDep, MatchingServiceDep
from src.api.schemas import (
    AvailabilityStatusUpdate,
    CandidateListResponse,
    InterpreterStatusUpdate,
)
from src.core.config import booking_config
from src.domain.models.booking import MatchCriteria
from src.domain.models.interpreter import (
    Interpreter,
    InterpreterFilter,
    InterpreterPage,
    InterpreterProfile,
    InterpreterStatistics,
    InterpreterUpdate,
)

router = APIRouter(prefix="/interpreters", tags=["interpreters"])


@router.post("", response_model=Interpreter, status_code=status.HTTP_201_CREATED)
async def register_interpreter(
    profile: InterpreterProfile, actor: ActorDep, service: InterpreterServiceDep
):
    return await service.register(profile, actor=actor)


@router.post("/match", response_model=CandidateListResponse)
async def match_interpreters(criteria: MatchCriteria, service: MatchingServiceDep):
    """
    Ranked interpreters able to take the slot.

    Without an explicit limit the list is capped at the configured
    max_match_candidates.
    """
    if criteria.limit is None:
        criteria = criteria.model_copy(
            update={"limit": booking_config.policy.max_match_candidates}
        )
    interpreters = await service.find_candidates(criteria)
    return CandidateListResponse(interpreters=interpreters, total=len(interpreters))


@router.post("/search", response_model=InterpreterPage)
async def search_interpreters(
    criteria: InterpreterFilter, service: InterpreterServiceDep
):
    return await service.search(criteria)


@router.get("/by-user/{user_id}", response_model=Interpreter)
async def get_interpreter_by_user(user_id: str, service: InterpreterServiceDep):
    return await service.get_by_user_id(user_id)


@router.get("/{interpreter_id}", response_model=Interpreter)
async def get_interpreter(interpreter_id: str, service: InterpreterServiceDep):
    return await service.get(interpreter_id)


@router.patch("/{interpreter_id}", response_model=Interpreter)
async def update_interpreter(
    interpreter_id: str,
    update: InterpreterUpdate,
    actor: ActorDep,
    service: InterpreterServiceDep,
):
    return await service.update_profile(interpreter_id, update, actor)


@router.put("/{interpreter_id}/availability", response_model=Interpreter)
async def update_availability(
    interpreter_id: str,
    body: AvailabilityStatusUpdate,
    actor: ActorDep,
    service: InterpreterServiceDep,
):
    return await service.update_availability_status(interpreter_id, body.status, actor)


@router.put("/{interpreter_id}/status", response_model=Interpreter)
async def update_status(
    interpreter_id: str,
    body: InterpreterStatusUpdate,
    actor: ActorDep,
    service: InterpreterServiceDep,
):
    """Approve, deactivate or suspend an interpreter (admin only)."""
    return await service.update_status(interpreter_id, body.status, actor)


@router.get("/{interpreter_id}/statistics", response_model=InterpreterStatistics)
async def interpreter_statistics(interpreter_id: str, service: InterpreterServiceDep):
    return await service.get_statistics(interpreter_id)
