"""Rating aggregator.

Each completed session can be rated once by its client and once by its
interpreter. A client rating also folds into the interpreter's running
average with a single atomic UPDATE inside the same transaction as the
session write, so concurrent ratings are all counted.
"""

from datetime import datetime
from typing import Callable, Optional

import structlog

from src.core.exceptions import (
    AlreadyRatedError,
    NotEligibleError,
    SessionNotFoundError,
    ValidationError,
)
from src.domain.models.actor import Actor
from src.domain.models.common import utc_now
from src.domain.models.session import (
    RaterRole,
    RatingSubmission,
    Session,
    SessionRating,
    SessionStatus,
)
from src.persistence.database import transaction
from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.services import permissions

log = structlog.get_logger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5

_SUB_SCORES = ("punctuality", "professionalism", "accuracy", "communication")


def validate_scores(rating: RatingSubmission) -> None:
    """All present scores must be integers in [1, 5]."""
    scores = {"overall": rating.overall}
    scores.update({name: getattr(rating, name) for name in _SUB_SCORES})
    for name, value in scores.items():
        if value is None:
            continue
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise ValidationError(
                f"Rating '{name}' must be between {MIN_SCORE} and {MAX_SCORE}, got {value}"
            )


class RatingService:
    """Records session ratings and keeps interpreter averages current."""

    def __init__(
        self,
        db_path: str,
        session_repo: Optional[SessionRepository] = None,
        interpreter_repo: Optional[InterpreterRepository] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_path = db_path
        self.session_repo = session_repo or SessionRepository(db_path)
        self.interpreter_repo = interpreter_repo or InterpreterRepository(db_path)
        self.clock = clock

    async def rate(
        self,
        session_id: str,
        rating: RatingSubmission,
        rater_role: RaterRole,
        actor: Actor,
    ) -> Session:
        """
        Attach a rating to a completed session.

        Args:
            session_id: Session being rated
            rating: Scores and optional comment
            rater_role: Which side is rating
            actor: Must be that side's participant, or an admin

        Returns:
            Session with the rating stored

        Raises:
            ValidationError: A score is outside [1, 5]
            SessionNotFoundError: Unknown session
            ForbiddenError: Actor is not the rating participant
            NotEligibleError: Session is not completed
            AlreadyRatedError: This side has already rated
        """
        validate_scores(rating)

        async with transaction(self.db_path) as db:
            session = await self.session_repo.get(session_id, db=db)
            if session is None:
                raise SessionNotFoundError(f"Session {session_id} not found")

            interpreter_user_id = None
            if session.interpreter_id:
                interpreter = await self.interpreter_repo.get(
                    session.interpreter_id, db=db
                )
                interpreter_user_id = interpreter.user_id if interpreter else None
            permissions.check_rate(session, rater_role, actor, interpreter_user_id)

            if session.status != SessionStatus.COMPLETED:
                raise NotEligibleError(
                    f"Session {session_id} is {session.status.value}; "
                    "only completed sessions can be rated"
                )

            slot = (
                "client_rating" if rater_role == RaterRole.CLIENT else "interpreter_rating"
            )
            if getattr(session, slot) is not None:
                raise AlreadyRatedError(
                    f"Session {session_id} already has a {rater_role.value} rating"
                )

            now = self.clock()
            stored = SessionRating(**rating.model_dump(), rated_at=now)
            updated = session.model_copy(update={slot: stored, "updated_at": now})
            saved = await self.session_repo.update(updated, session.version, db=db)

            if rater_role == RaterRole.CLIENT and session.interpreter_id:
                await self.interpreter_repo.record_rating(
                    session.interpreter_id, rating.overall, db=db
                )

        log.info(
            "rating_recorded",
            session_id=session_id,
            rater_role=rater_role.value,
            overall=rating.overall,
            actor_id=actor.user_id,
        )
        return saved
