"""Availability evaluation over interpreter weekly schedules.

Pure functions, no I/O. A schedule is a list of recurring weekly windows,
each in its own IANA timezone. An instant is available when, converted to a
window's timezone, it falls on that window's day (0 = Sunday) and within
[start_time, end_time] inclusive. Any matching window is enough.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from src.domain.models.booking import MatchCriteria
from src.domain.models.interpreter import (
    AvailabilityStatus,
    AvailabilityWindow,
    Interpreter,
    InterpreterStatus,
    SessionType,
)


def day_of_week(moment: datetime) -> int:
    """Day index with Sunday = 0 (datetime.weekday() has Monday = 0)."""
    return (moment.weekday() + 1) % 7


def is_available_at(schedule: Iterable[AvailabilityWindow], when: datetime) -> bool:
    """
    Check whether any window of the schedule covers the given instant.

    Args:
        schedule: Weekly windows; empty means never available
        when: Instant to test. Naive values are taken as UTC.

    Returns:
        True if some window matches day and time of day
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    for window in schedule:
        local = when.astimezone(ZoneInfo(window.timezone))
        if day_of_week(local) != window.day_of_week:
            continue
        time_of_day = local.time()
        if window.start_time <= time_of_day <= window.end_time:
            return True
    return False


def speaks_languages(interpreter: Interpreter, source: str, target: str) -> bool:
    codes = interpreter.language_codes()
    return source in codes and target in codes


def is_available_for_session(
    interpreter: Interpreter, session_type: SessionType, when: datetime
) -> bool:
    """Account active, session type offered, live status AVAILABLE and on schedule."""
    return (
        interpreter.status == InterpreterStatus.ACTIVE
        and session_type in interpreter.supported_session_types
        and interpreter.current_availability_status == AvailabilityStatus.AVAILABLE
        and is_available_at(interpreter.weekly_schedule, when)
    )


def qualification_failure(
    interpreter: Interpreter, criteria: MatchCriteria
) -> Optional[str]:
    """
    Explain why an interpreter cannot take a slot.

    Same checks as matching, applied to one known interpreter.

    Returns:
        None when qualified, otherwise a short human-readable reason
    """
    if interpreter.status != InterpreterStatus.ACTIVE:
        return f"interpreter is {interpreter.status.value}"
    if interpreter.current_availability_status != AvailabilityStatus.AVAILABLE:
        return f"interpreter is {interpreter.current_availability_status.value}"
    if criteria.session_type not in interpreter.supported_session_types:
        return f"interpreter does not offer {criteria.session_type.value} sessions"
    if criteria.specialization not in interpreter.specializations:
        return f"interpreter does not cover {criteria.specialization.value}"
    if not speaks_languages(
        interpreter, criteria.source_language, criteria.target_language
    ):
        return (
            f"interpreter does not work in "
            f"{criteria.source_language}->{criteria.target_language}"
        )
    if not is_available_at(interpreter.weekly_schedule, criteria.scheduled_start):
        return "requested time is outside the interpreter's schedule"
    return None


def is_qualified(interpreter: Interpreter, criteria: MatchCriteria) -> bool:
    return qualification_failure(interpreter, criteria) is None
