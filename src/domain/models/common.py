"""Shared field types for domain models.

All timestamps in the booking engine are timezone-aware UTC. Naive values
coming from callers are interpreted as UTC.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to timezone-aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]
