"""Matching engine: ranks interpreters able to take a requested slot.

Algorithm:
1. Store query for capability (active, live status available, session type,
   specialization, both languages)
2. Keep those whose weekly schedule covers the scheduled start
3. Rank by verified first, then average rating, then completed sessions,
   then id for a stable order
4. Truncate to the requested limit

Read-only. Calendar conflicts are not checked here; booking does that.
"""

from typing import List

import structlog

from src.domain.models.booking import MatchCriteria
from src.domain.models.interpreter import Interpreter
from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.services.availability import is_available_at

log = structlog.get_logger(__name__)


def ranking_key(interpreter: Interpreter) -> tuple:
    return (
        not interpreter.is_verified,
        -interpreter.average_rating,
        -interpreter.total_sessions_completed,
        interpreter.id,
    )


class MatchingService:
    """Finds qualified, available interpreters for a slot."""

    def __init__(self, interpreter_repo: InterpreterRepository):
        self.interpreter_repo = interpreter_repo

    async def find_candidates(self, criteria: MatchCriteria) -> List[Interpreter]:
        """
        Ranked interpreters for the criteria.

        Args:
            criteria: Languages, session type, specialization, scheduled start
                and optional limit

        Returns:
            Ranked list, possibly empty
        """
        capable = await self.interpreter_repo.find_capable(
            criteria.session_type,
            criteria.specialization,
            criteria.source_language,
            criteria.target_language,
        )
        on_schedule = [
            interpreter
            for interpreter in capable
            if is_available_at(interpreter.weekly_schedule, criteria.scheduled_start)
        ]
        ranked = sorted(on_schedule, key=ranking_key)

        if criteria.limit is not None:
            ranked = ranked[: criteria.limit]

        log.info(
            "interpreter_candidates_found",
            source_language=criteria.source_language,
            target_language=criteria.target_language,
            session_type=criteria.session_type.value,
            specialization=criteria.specialization.value,
            capable=len(capable),
            returned=len(ranked),
        )
        return ranked
