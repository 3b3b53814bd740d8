"""Session repository for database operations."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import aiosqlite
import structlog

from src.core.exceptions import ConcurrentModificationError
from src.domain.models.session import (
    Session,
    SessionFilter,
    SessionLocation,
    SessionRating,
    SessionRequirements,
    SessionStatus,
)
from src.persistence.database import connection_scope, to_db_timestamp

log = structlog.get_logger(__name__)

# Columns written on every update; identity, creation time and version excluded
_MUTABLE_COLUMNS = (
    "interpreter_id",
    "status",
    "scheduled_start",
    "scheduled_end",
    "estimated_duration",
    "actual_start",
    "actual_end",
    "actual_duration",
    "confirmed_at",
    "location",
    "requirements",
    "recording_permitted",
    "hourly_rate",
    "additional_fees",
    "total_cost",
    "pricing_version",
    "client_rating",
    "interpreter_rating",
    "is_rescheduled",
    "rescheduled_count",
    "original_session_id",
    "rescheduled_session_id",
    "cancellation_reason",
    "cancellation_category",
    "cancelled_at",
    "cancelled_by",
    "session_notes",
    "updated_at",
)

_INSERT_COLUMNS = (
    "id",
    "client_id",
    "session_type",
    "specialization",
    "urgency",
    "source_language",
    "target_language",
    "created_at",
    "version",
) + _MUTABLE_COLUMNS


class SessionRepository:
    """Repository for interpreter session CRUD operations.

    Every method accepts an optional open connection so it can take part in
    a caller's transaction; without one it opens its own connection.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(
        self, session: Session, db: Optional[aiosqlite.Connection] = None
    ) -> Session:
        """Insert a new session row."""
        values = self._to_columns(session)
        placeholders = ", ".join("?" for _ in _INSERT_COLUMNS)
        async with connection_scope(self.db_path, db) as conn:
            await conn.execute(
                f"INSERT INTO interpreter_sessions ({', '.join(_INSERT_COLUMNS)}) "
                f"VALUES ({placeholders})",
                tuple(values[column] for column in _INSERT_COLUMNS),
            )
        log.debug("session_row_inserted", session_id=session.id)
        return session

    async def get(
        self, session_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Optional[Session]:
        """Get a session by ID."""
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT * FROM interpreter_sessions WHERE id = ?", (session_id,)
            )
            row = await cursor.fetchone()
            if not row:
                return None
            return self._row_to_session(row)

    async def update(
        self,
        session: Session,
        expected_version: int,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Session:
        """
        Write all mutable fields if the stored version still matches.

        Args:
            session: New state of the session
            expected_version: Version the caller read before modifying
            db: Connection of the enclosing transaction

        Returns:
            The session carrying its new version

        Raises:
            ConcurrentModificationError: If another writer got there first
        """
        values = self._to_columns(session)
        assignments = ", ".join(f"{column} = ?" for column in _MUTABLE_COLUMNS)
        params = tuple(values[column] for column in _MUTABLE_COLUMNS)

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                f"UPDATE interpreter_sessions SET {assignments}, version = version + 1 "
                "WHERE id = ? AND version = ?",
                params + (session.id, expected_version),
            )
            if cursor.rowcount == 0:
                log.warning(
                    "session_version_mismatch",
                    session_id=session.id,
                    expected_version=expected_version,
                )
                raise ConcurrentModificationError(
                    f"Session {session.id} was modified concurrently"
                )

        return session.model_copy(update={"version": expected_version + 1})

    async def find_overlapping(
        self,
        interpreter_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[SessionStatus],
        exclude_session_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> List[Session]:
        """
        Sessions of an interpreter whose interval intersects [start, end).

        Intervals are half-open: a session ending exactly at start does not
        overlap.
        """
        status_values = [status.value for status in statuses]
        if not status_values:
            return []
        placeholders = ", ".join("?" for _ in status_values)

        query = (
            "SELECT * FROM interpreter_sessions "
            f"WHERE interpreter_id = ? AND status IN ({placeholders}) "
            "AND scheduled_start < ? AND scheduled_end > ?"
        )
        params: list = [
            interpreter_id,
            *status_values,
            to_db_timestamp(end),
            to_db_timestamp(start),
        ]
        if exclude_session_id is not None:
            query += " AND id != ?"
            params.append(exclude_session_id)
        query += " ORDER BY scheduled_start, id"

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def list_upcoming(
        self,
        after: datetime,
        before: datetime,
        statuses: Iterable[SessionStatus],
        client_id: Optional[str] = None,
        interpreter_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> List[Session]:
        """Sessions starting in (after, before), optionally scoped, ordered by start."""
        status_values = [status.value for status in statuses]
        placeholders = ", ".join("?" for _ in status_values)
        query = (
            "SELECT * FROM interpreter_sessions "
            f"WHERE status IN ({placeholders}) "
            "AND scheduled_start > ? AND scheduled_start < ?"
        )
        params: list = [*status_values, to_db_timestamp(after), to_db_timestamp(before)]
        query, params = self._scope(query, params, client_id, interpreter_id)
        query += " ORDER BY scheduled_start, id"

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows]

    async def count_statistics(
        self,
        now: datetime,
        client_id: Optional[str] = None,
        interpreter_id: Optional[str] = None,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Dict[str, int]:
        """Total, completed, cancelled and upcoming counts in one pass."""
        query = (
            "SELECT COUNT(*) AS total, "
            "COALESCE(SUM(CASE WHEN status = ? THEN 1 ELSE 0 END), 0) AS completed, "
            "COALESCE(SUM(CASE WHEN status = ? THEN 1 ELSE 0 END), 0) AS cancelled, "
            "COALESCE(SUM(CASE WHEN status IN (?, ?) AND scheduled_start > ? "
            "THEN 1 ELSE 0 END), 0) AS upcoming "
            "FROM interpreter_sessions WHERE 1 = 1"
        )
        params: list = [
            SessionStatus.COMPLETED.value,
            SessionStatus.CANCELLED.value,
            SessionStatus.REQUESTED.value,
            SessionStatus.CONFIRMED.value,
            to_db_timestamp(now),
        ]
        query, params = self._scope(query, params, client_id, interpreter_id)

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            row = await cursor.fetchone()
            return {
                "total": row["total"],
                "completed": row["completed"],
                "cancelled": row["cancelled"],
                "upcoming": row["upcoming"],
            }

    async def search(
        self,
        criteria: SessionFilter,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Tuple[List[Session], int]:
        """
        One page of sessions matching the filter, latest start first.

        Returns:
            (sessions on the requested page, total number of matches)
        """
        query = "FROM interpreter_sessions WHERE 1 = 1"
        params: list = []
        query, params = self._scope(
            query, params, criteria.client_id, criteria.interpreter_id
        )

        if criteria.statuses:
            placeholders = ", ".join("?" for _ in criteria.statuses)
            query += f" AND status IN ({placeholders})"
            params.extend(status.value for status in criteria.statuses)
        if criteria.session_type is not None:
            query += " AND session_type = ?"
            params.append(criteria.session_type.value)
        if criteria.specialization is not None:
            query += " AND specialization = ?"
            params.append(criteria.specialization.value)
        if criteria.date_from is not None:
            query += " AND scheduled_start >= ?"
            params.append(to_db_timestamp(criteria.date_from))
        if criteria.date_to is not None:
            query += " AND scheduled_start <= ?"
            params.append(to_db_timestamp(criteria.date_to))
        if criteria.language is not None:
            query += " AND (source_language = ? OR target_language = ?)"
            params += [criteria.language, criteria.language]
        if criteria.needs_rating:
            query += " AND status = ? AND client_rating IS NULL"
            params.append(SessionStatus.COMPLETED.value)

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) {query}", params)
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                f"SELECT * {query} ORDER BY scheduled_start DESC, id LIMIT ? OFFSET ?",
                params + [criteria.limit, (criteria.page - 1) * criteria.limit],
            )
            rows = await cursor.fetchall()
            return [self._row_to_session(row) for row in rows], total

    @staticmethod
    def _scope(
        query: str,
        params: list,
        client_id: Optional[str],
        interpreter_id: Optional[str],
    ) -> tuple:
        if client_id is not None:
            query += " AND client_id = ?"
            params.append(client_id)
        if interpreter_id is not None:
            query += " AND interpreter_id = ?"
            params.append(interpreter_id)
        return query, params

    @staticmethod
    def _to_columns(session: Session) -> dict:
        return {
            "id": session.id,
            "client_id": session.client_id,
            "interpreter_id": session.interpreter_id,
            "status": session.status.value,
            "session_type": session.session_type.value,
            "specialization": session.specialization.value,
            "urgency": session.urgency.value,
            "source_language": session.source_language,
            "target_language": session.target_language,
            "scheduled_start": to_db_timestamp(session.scheduled_start),
            "scheduled_end": to_db_timestamp(session.scheduled_end),
            "estimated_duration": session.estimated_duration,
            "actual_start": to_db_timestamp(session.actual_start),
            "actual_end": to_db_timestamp(session.actual_end),
            "actual_duration": session.actual_duration,
            "confirmed_at": to_db_timestamp(session.confirmed_at),
            "location": session.location.model_dump_json(),
            "requirements": session.requirements.model_dump_json(),
            "recording_permitted": int(session.recording_permitted),
            "hourly_rate": str(session.hourly_rate),
            "additional_fees": str(session.additional_fees),
            "total_cost": str(session.total_cost),
            "pricing_version": session.pricing_version,
            "client_rating": (
                session.client_rating.model_dump_json()
                if session.client_rating
                else None
            ),
            "interpreter_rating": (
                session.interpreter_rating.model_dump_json()
                if session.interpreter_rating
                else None
            ),
            "is_rescheduled": int(session.is_rescheduled),
            "rescheduled_count": session.rescheduled_count,
            "original_session_id": session.original_session_id,
            "rescheduled_session_id": session.rescheduled_session_id,
            "cancellation_reason": session.cancellation_reason,
            "cancellation_category": (
                session.cancellation_category.value
                if session.cancellation_category
                else None
            ),
            "cancelled_at": to_db_timestamp(session.cancelled_at),
            "cancelled_by": session.cancelled_by,
            "session_notes": session.session_notes,
            "created_at": to_db_timestamp(session.created_at),
            "updated_at": to_db_timestamp(session.updated_at),
            "version": session.version,
        }

    def _row_to_session(self, row: aiosqlite.Row) -> Session:
        """Convert database row to Session model."""
        return Session(
            id=row["id"],
            client_id=row["client_id"],
            interpreter_id=row["interpreter_id"],
            status=row["status"],
            session_type=row["session_type"],
            specialization=row["specialization"],
            urgency=row["urgency"],
            source_language=row["source_language"],
            target_language=row["target_language"],
            scheduled_start=row["scheduled_start"],
            scheduled_end=row["scheduled_end"],
            estimated_duration=row["estimated_duration"],
            actual_start=row["actual_start"],
            actual_end=row["actual_end"],
            actual_duration=row["actual_duration"],
            confirmed_at=row["confirmed_at"],
            location=SessionLocation.model_validate_json(row["location"]),
            requirements=SessionRequirements.model_validate_json(row["requirements"]),
            recording_permitted=bool(row["recording_permitted"]),
            hourly_rate=row["hourly_rate"],
            additional_fees=row["additional_fees"],
            total_cost=row["total_cost"],
            pricing_version=row["pricing_version"],
            client_rating=(
                SessionRating.model_validate_json(row["client_rating"])
                if row["client_rating"]
                else None
            ),
            interpreter_rating=(
                SessionRating.model_validate_json(row["interpreter_rating"])
                if row["interpreter_rating"]
                else None
            ),
            is_rescheduled=bool(row["is_rescheduled"]),
            rescheduled_count=row["rescheduled_count"],
            original_session_id=row["original_session_id"],
            rescheduled_session_id=row["rescheduled_session_id"],
            cancellation_reason=row["cancellation_reason"],
            cancellation_category=row["cancellation_category"],
            cancelled_at=row["cancelled_at"],
            cancelled_by=row["cancelled_by"],
            session_notes=row["session_notes"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            version=row["version"],
        )
