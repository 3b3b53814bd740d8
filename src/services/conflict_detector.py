"""Double-booking detection for interpreter time slots.

Two intervals conflict when existing.start < proposed.end and
existing.end > proposed.start. Only sessions that hold the slot
(CONFIRMED, IN_PROGRESS) count; REQUESTED sessions are tentative.

Callers run the check inside the same write transaction as the status or
schedule change that depends on it, passing the transaction's connection.
"""

from datetime import datetime
from typing import Optional

import aiosqlite
import structlog

from src.core.exceptions import SchedulingConflictError
from src.domain.models.session import BLOCKING_STATUSES, Session
from src.persistence.repositories.session_repo import SessionRepository

log = structlog.get_logger(__name__)


class ConflictDetector:
    """Finds blocking sessions that overlap a proposed interval."""

    def __init__(self, session_repo: SessionRepository):
        self.session_repo = session_repo

    async def find_conflict(
        self,
        interpreter_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Optional[Session]:
        """
        Return the earliest blocking session overlapping [start, end), if any.

        Args:
            interpreter_id: Interpreter whose calendar is checked
            start: Proposed start
            end: Proposed end
            exclude_session_id: Session being re-checked (confirm, reschedule)
            db: Connection of the enclosing transaction
        """
        overlapping = await self.session_repo.find_overlapping(
            interpreter_id,
            start,
            end,
            BLOCKING_STATUSES,
            exclude_session_id=exclude_session_id,
            db=db,
        )
        return overlapping[0] if overlapping else None

    async def has_conflict(
        self,
        interpreter_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> bool:
        conflict = await self.find_conflict(
            interpreter_id, start, end, exclude_session_id=exclude_session_id, db=db
        )
        return conflict is not None

    async def ensure_free(
        self,
        interpreter_id: str,
        start: datetime,
        end: datetime,
        exclude_session_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> None:
        """
        Raise if the interpreter already holds an overlapping session.

        Raises:
            SchedulingConflictError: Carrying the conflicting session id
        """
        conflict = await self.find_conflict(
            interpreter_id, start, end, exclude_session_id=exclude_session_id, db=db
        )
        if conflict is None:
            return

        log.info(
            "scheduling_conflict_detected",
            interpreter_id=interpreter_id,
            conflicting_session_id=conflict.id,
            proposed_start=start.isoformat(),
            proposed_end=end.isoformat(),
        )
        raise SchedulingConflictError(
            f"Interpreter {interpreter_id} is already booked from "
            f"{conflict.scheduled_start.isoformat()} to "
            f"{conflict.scheduled_end.isoformat()}",
            conflicting_session_id=conflict.id,
        )
