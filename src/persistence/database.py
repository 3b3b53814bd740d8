"""
SQLite database connection management.

Provides async database initialization, a connection factory and the write
transaction used by every mutating booking operation.
Uses aiosqlite for async SQLite access.

Schema is defined in schema.sql (consolidated, no migrations).

Concurrency model:
    - Connections run in autocommit mode; multi-statement units of work go
      through transaction(), which opens with BEGIN IMMEDIATE. SQLite then
      admits one writer at a time, so a conflict check and the write that
      depends on it cannot interleave with another writer.
    - WAL journal mode keeps readers (matching, lookups) unblocked.
    - A writer that cannot get the lock within settings.sqlite_busy_timeout
      gets ConcurrentModificationError; the caller may retry.
"""

import sqlite3
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite
import structlog

from src.core.config import settings
from src.core.exceptions import ConcurrentModificationError, StorageUnavailableError

log = structlog.get_logger(__name__)

# Path to consolidated schema file
SCHEMA_FILE = Path(__file__).parent / "schema.sql"

_LOCK_MESSAGES = ("database is locked", "database table is locked")
_UNAVAILABLE_MESSAGES = ("unable to open", "disk i/o error", "readonly database")


async def init_database(db_path: Path | None = None) -> None:
    """
    Initialize database from consolidated schema.

    Args:
        db_path: Optional path to database file. Uses settings.database_path if not provided.

    Creates database file if it doesn't exist and applies consolidated schema.
    Existing databases are left intact (idempotent schema using CREATE TABLE IF NOT EXISTS).
    """
    db_path = Path(db_path or settings.database_path)

    db_path.parent.mkdir(parents=True, exist_ok=True)

    log.info("initializing_database", path=str(db_path))

    if not SCHEMA_FILE.exists():
        log.error("schema_file_not_found", path=str(SCHEMA_FILE))
        raise FileNotFoundError(f"Schema file not found: {SCHEMA_FILE}")

    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA foreign_keys = ON")

        # WAL: readers never block the single writer
        await db.execute("PRAGMA journal_mode = WAL")

        schema_sql = SCHEMA_FILE.read_text()
        await db.executescript(schema_sql)
        await db.commit()

    log.info("database_initialized", path=str(db_path))


def translate_operational_error(exc: sqlite3.OperationalError) -> Exception:
    """Map an sqlite OperationalError onto the booking error taxonomy.

    Lock timeouts become ConcurrentModificationError (retryable), an
    unreachable database becomes StorageUnavailableError. Anything else is
    returned unchanged.
    """
    message = str(exc).lower()
    if any(m in message for m in _LOCK_MESSAGES):
        return ConcurrentModificationError(
            "Another operation is writing to the same records, retry"
        )
    if any(m in message for m in _UNAVAILABLE_MESSAGES):
        return StorageUnavailableError(f"Database unavailable: {exc}")
    return exc


async def connect(db_path: Path | str | None = None) -> aiosqlite.Connection:
    """
    Open an autocommit connection with foreign keys and Row factory enabled.

    Caller is responsible for closing the connection.

    Raises:
        StorageUnavailableError: If the database cannot be opened
    """
    path = str(db_path or settings.database_path)
    try:
        db = await aiosqlite.connect(
            path, timeout=settings.sqlite_busy_timeout, isolation_level=None
        )
    except sqlite3.OperationalError as e:
        log.error("database_connect_failed", path=path, error=str(e))
        raise StorageUnavailableError(f"Database unavailable: {e}") from e

    await db.execute("PRAGMA foreign_keys = ON")
    db.row_factory = aiosqlite.Row
    return db


@asynccontextmanager
async def transaction(
    db_path: Path | str | None = None,
) -> AsyncIterator[aiosqlite.Connection]:
    """
    Run a unit of work inside one serialized write transaction.

        async with transaction(self.db_path) as db:
            session = await self.session_repo.get(session_id, db=db)
            ...

    Commits when the block exits normally, rolls back on any exception.

    Raises:
        ConcurrentModificationError: If the write lock cannot be acquired
        StorageUnavailableError: If the database cannot be reached
    """
    db = await connect(db_path)
    try:
        try:
            await db.execute("BEGIN IMMEDIATE")
        except sqlite3.OperationalError as e:
            log.warning("transaction_begin_failed", error=str(e))
            raise translate_operational_error(e) from e

        try:
            yield db
        except sqlite3.OperationalError as e:
            await _rollback(db)
            raise translate_operational_error(e) from e
        except Exception:
            await _rollback(db)
            raise

        try:
            await db.execute("COMMIT")
        except sqlite3.OperationalError as e:
            await _rollback(db)
            raise translate_operational_error(e) from e
    finally:
        await db.close()


async def _rollback(db: aiosqlite.Connection) -> None:
    if db.in_transaction:
        await db.execute("ROLLBACK")


@asynccontextmanager
async def connection_scope(
    db_path: Path | str | None, db: Optional[aiosqlite.Connection] = None
) -> AsyncIterator[aiosqlite.Connection]:
    """
    Yield the caller's connection if one is given, otherwise a fresh one.

    Lets repository methods join an open transaction or run standalone.
    """
    if db is not None:
        yield db
        return

    conn = await connect(db_path)
    try:
        yield conn
    finally:
        await conn.close()


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as fixed-width UTC ISO-8601."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


async def check_database_health() -> dict:
    """
    Check database health for health endpoint.

    Returns:
        Dict with health status and basic metrics.
    """
    try:
        async with aiosqlite.connect(settings.database_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM interpreter_sessions")
            row = await cursor.fetchone()
            session_count = row[0] if row else 0

            cursor = await db.execute("PRAGMA integrity_check")
            integrity = await cursor.fetchone()

            return {
                "status": "healthy",
                "session_count": session_count,
                "integrity": integrity[0] if integrity else "unknown",
                "path": str(settings.database_path),
            }
    except Exception as e:
        log.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
