"""Interpreter repository for database operations.

Profile fields are written with an optimistic version check. Aggregates
(sessions completed, rating, earnings) are only ever changed by the atomic
increment methods, which compute the new value inside the UPDATE statement
so concurrent writers never lose an update.
"""

import json
from decimal import Decimal
from typing import List, Optional, Tuple

import aiosqlite
import structlog

from src.core.exceptions import ConcurrentModificationError, InterpreterNotFoundError
from src.domain.models.interpreter import (
    AvailabilityStatus,
    AvailabilityWindow,
    Interpreter,
    InterpreterFilter,
    InterpreterStatus,
    LanguageProficiency,
    RateStructure,
    SessionType,
    Specialization,
)
from src.persistence.database import connection_scope, to_db_timestamp

log = structlog.get_logger(__name__)

_CENTS_PER_UNIT = Decimal(100)


def _to_cents(amount: Decimal) -> int:
    return int((Decimal(amount) * _CENTS_PER_UNIT).to_integral_value())


def _from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / _CENTS_PER_UNIT).quantize(Decimal("0.01"))


def _placeholders(values: list) -> str:
    return ", ".join("?" for _ in values)


class InterpreterRepository:
    """Repository for interpreter profiles and their aggregates."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def create(
        self, interpreter: Interpreter, db: Optional[aiosqlite.Connection] = None
    ) -> Interpreter:
        async with connection_scope(self.db_path, db) as conn:
            await conn.execute(
                """INSERT INTO interpreters (
                    id, user_id, status, languages, specializations,
                    supported_session_types, rate_structure, weekly_schedule,
                    current_availability_status, bio, is_verified,
                    background_check_completed, total_sessions_completed,
                    average_rating, total_ratings, total_earnings_cents,
                    last_active_at, created_at, updated_at, version
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    interpreter.id,
                    interpreter.user_id,
                    interpreter.status.value,
                    self._dump_languages(interpreter.languages),
                    json.dumps([s.value for s in interpreter.specializations]),
                    json.dumps([t.value for t in interpreter.supported_session_types]),
                    interpreter.rate_structure.model_dump_json(),
                    self._dump_schedule(interpreter.weekly_schedule),
                    interpreter.current_availability_status.value,
                    interpreter.bio,
                    int(interpreter.is_verified),
                    int(interpreter.background_check_completed),
                    interpreter.total_sessions_completed,
                    interpreter.average_rating,
                    interpreter.total_ratings,
                    _to_cents(interpreter.total_earnings),
                    to_db_timestamp(interpreter.last_active_at),
                    to_db_timestamp(interpreter.created_at),
                    to_db_timestamp(interpreter.updated_at),
                    interpreter.version,
                ),
            )
        log.debug("interpreter_row_inserted", interpreter_id=interpreter.id)
        return interpreter

    async def get(
        self, interpreter_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Optional[Interpreter]:
        """Get an interpreter by ID."""
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT * FROM interpreters WHERE id = ?", (interpreter_id,)
            )
            row = await cursor.fetchone()
            if not row:
                return None
            return self._row_to_interpreter(row)

    async def get_by_user_id(
        self, user_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Optional[Interpreter]:
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                "SELECT * FROM interpreters WHERE user_id = ?", (user_id,)
            )
            row = await cursor.fetchone()
            if not row:
                return None
            return self._row_to_interpreter(row)

    async def find_capable(
        self,
        session_type: SessionType,
        specialization: Specialization,
        source_language: str,
        target_language: str,
        db: Optional[aiosqlite.Connection] = None,
    ) -> List[Interpreter]:
        """
        Active, currently available interpreters offering the session type and
        specialization and working in both languages.

        Schedules are not evaluated here; see src.services.availability.
        """
        query = """
            SELECT i.* FROM interpreters i
            WHERE i.status = ?
              AND i.current_availability_status = ?
              AND EXISTS (
                  SELECT 1 FROM json_each(i.supported_session_types) WHERE value = ?
              )
              AND EXISTS (
                  SELECT 1 FROM json_each(i.specializations) WHERE value = ?
              )
              AND EXISTS (
                  SELECT 1 FROM json_each(i.languages)
                  WHERE json_extract(value, '$.language') = ?
              )
              AND EXISTS (
                  SELECT 1 FROM json_each(i.languages)
                  WHERE json_extract(value, '$.language') = ?
              )
            ORDER BY i.id
        """
        params = (
            InterpreterStatus.ACTIVE.value,
            AvailabilityStatus.AVAILABLE.value,
            session_type.value,
            specialization.value,
            source_language,
            target_language,
        )
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(query, params)
            rows = await cursor.fetchall()
            return [self._row_to_interpreter(row) for row in rows]

    async def search(
        self,
        criteria: InterpreterFilter,
        paginate: bool = True,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Tuple[List[Interpreter], int]:
        """
        Interpreters matching the directory filters, best first.

        Ordered verified, rating, completed sessions, then id. Weekly
        schedule coverage for available_at is left to the caller; only the
        live AVAILABLE status is checked here.

        Args:
            criteria: Search filters and page
            paginate: False returns every match instead of one page
            db: Connection of the enclosing transaction

        Returns:
            (interpreters, total number of matches)
        """
        clauses: List[str] = []
        params: list = []

        if criteria.languages:
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(i.languages) "
                "WHERE json_extract(value, '$.language') IN "
                f"({_placeholders(criteria.languages)}))"
            )
            params.extend(criteria.languages)
        if criteria.specializations:
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(i.specializations) "
                f"WHERE value IN ({_placeholders(criteria.specializations)}))"
            )
            params.extend(s.value for s in criteria.specializations)
        if criteria.session_type is not None:
            clauses.append(
                "EXISTS (SELECT 1 FROM json_each(i.supported_session_types) "
                "WHERE value = ?)"
            )
            params.append(criteria.session_type.value)
        if criteria.status is not None:
            clauses.append("i.status = ?")
            params.append(criteria.status.value)
        if criteria.is_verified is not None:
            clauses.append("i.is_verified = ?")
            params.append(int(criteria.is_verified))
        if criteria.min_rating is not None:
            clauses.append("i.average_rating >= ?")
            params.append(criteria.min_rating)
        if criteria.max_rate is not None:
            # hourly_rate is serialized as a decimal string
            clauses.append(
                "CAST(json_extract(i.rate_structure, '$.hourly_rate') AS REAL) <= ?"
            )
            params.append(float(criteria.max_rate))
        if criteria.available_at is not None:
            clauses.append("i.current_availability_status = ?")
            params.append(AvailabilityStatus.AVAILABLE.value)

        where = " AND ".join(clauses) if clauses else "1 = 1"
        query = (
            f"SELECT i.* FROM interpreters i WHERE {where} "
            "ORDER BY i.is_verified DESC, i.average_rating DESC, "
            "i.total_sessions_completed DESC, i.id"
        )
        page_params = list(params)
        if paginate:
            query += " LIMIT ? OFFSET ?"
            page_params += [criteria.limit, (criteria.page - 1) * criteria.limit]

        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM interpreters i WHERE {where}", params
            )
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(query, page_params)
            rows = await cursor.fetchall()
            return [self._row_to_interpreter(row) for row in rows], total

    async def update_profile(
        self,
        interpreter: Interpreter,
        expected_version: int,
        db: Optional[aiosqlite.Connection] = None,
    ) -> Interpreter:
        """
        Write profile and status fields, never aggregates.

        Raises:
            ConcurrentModificationError: If the stored version moved on
        """
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                """UPDATE interpreters SET
                    status = ?, languages = ?, specializations = ?,
                    supported_session_types = ?, rate_structure = ?,
                    weekly_schedule = ?, current_availability_status = ?, bio = ?,
                    is_verified = ?, background_check_completed = ?,
                    last_active_at = ?, updated_at = ?, version = version + 1
                WHERE id = ? AND version = ?""",
                (
                    interpreter.status.value,
                    self._dump_languages(interpreter.languages),
                    json.dumps([s.value for s in interpreter.specializations]),
                    json.dumps([t.value for t in interpreter.supported_session_types]),
                    interpreter.rate_structure.model_dump_json(),
                    self._dump_schedule(interpreter.weekly_schedule),
                    interpreter.current_availability_status.value,
                    interpreter.bio,
                    int(interpreter.is_verified),
                    int(interpreter.background_check_completed),
                    to_db_timestamp(interpreter.last_active_at),
                    to_db_timestamp(interpreter.updated_at),
                    interpreter.id,
                    expected_version,
                ),
            )
            if cursor.rowcount == 0:
                raise ConcurrentModificationError(
                    f"Interpreter {interpreter.id} was modified concurrently"
                )
        return interpreter.model_copy(update={"version": expected_version + 1})

    async def record_completion(
        self,
        interpreter_id: str,
        earnings: Decimal,
        db: Optional[aiosqlite.Connection] = None,
    ) -> None:
        """Atomically add one completed session and its earnings."""
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                """UPDATE interpreters SET
                    total_sessions_completed = total_sessions_completed + 1,
                    total_earnings_cents = total_earnings_cents + ?
                WHERE id = ?""",
                (_to_cents(earnings), interpreter_id),
            )
            if cursor.rowcount == 0:
                raise InterpreterNotFoundError(f"Interpreter {interpreter_id} not found")

    async def record_rating(
        self,
        interpreter_id: str,
        overall: int,
        db: Optional[aiosqlite.Connection] = None,
    ) -> None:
        """Atomically fold one client rating into the running average."""
        async with connection_scope(self.db_path, db) as conn:
            cursor = await conn.execute(
                """UPDATE interpreters SET
                    average_rating =
                        (average_rating * total_ratings + ?) / (total_ratings + 1.0),
                    total_ratings = total_ratings + 1
                WHERE id = ?""",
                (overall, interpreter_id),
            )
            if cursor.rowcount == 0:
                raise InterpreterNotFoundError(f"Interpreter {interpreter_id} not found")

    @staticmethod
    def _dump_languages(languages: List[LanguageProficiency]) -> str:
        return json.dumps([lang.model_dump(mode="json") for lang in languages])

    @staticmethod
    def _dump_schedule(schedule: List[AvailabilityWindow]) -> str:
        return json.dumps([window.model_dump(mode="json") for window in schedule])

    def _row_to_interpreter(self, row: aiosqlite.Row) -> Interpreter:
        """Convert database row to Interpreter model."""
        return Interpreter(
            id=row["id"],
            user_id=row["user_id"],
            status=row["status"],
            languages=json.loads(row["languages"]),
            specializations=json.loads(row["specializations"]),
            supported_session_types=json.loads(row["supported_session_types"]),
            rate_structure=RateStructure.model_validate_json(row["rate_structure"]),
            weekly_schedule=json.loads(row["weekly_schedule"]),
            current_availability_status=row["current_availability_status"],
            bio=row["bio"],
            is_verified=bool(row["is_verified"]),
            background_check_completed=bool(row["background_check_completed"]),
            total_sessions_completed=row["total_sessions_completed"],
            average_rating=row["average_rating"],
            total_ratings=row["total_ratings"],
            total_earnings=_from_cents(row["total_earnings_cents"]),
            last_active_at=row["last_active_at"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            version=row["version"],
        )
