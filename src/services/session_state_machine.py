"""Session lifecycle rules: legal transitions, side effects and eligibility.

Transition table:
    REQUESTED   -> CONFIRMED, CANCELLED
    CONFIRMED   -> IN_PROGRESS, CANCELLED, RESCHEDULED
    IN_PROGRESS -> COMPLETED, CANCELLED
    RESCHEDULED -> CONFIRMED, CANCELLED
    COMPLETED, CANCELLED, NO_SHOW are terminal

Everything here is pure: functions take the current record and the clock
reading and return a new record or a verdict. BookingService wraps them in a
write transaction together with the conflict check and aggregate updates.
"""

from datetime import datetime, timedelta
from typing import Dict, FrozenSet, Optional

from src.core.config import PolicyConfig
from src.core.exceptions import IllegalTransitionError
from src.domain.models.actor import Actor
from src.domain.models.pricing import UrgencyLevel
from src.domain.models.session import (
    CancellationCategory,
    Session,
    SessionStatus,
)
from src.services.pricing_service import PricingService

TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.REQUESTED: frozenset(
        {SessionStatus.CONFIRMED, SessionStatus.CANCELLED}
    ),
    SessionStatus.CONFIRMED: frozenset(
        {
            SessionStatus.IN_PROGRESS,
            SessionStatus.CANCELLED,
            SessionStatus.RESCHEDULED,
        }
    ),
    SessionStatus.IN_PROGRESS: frozenset(
        {SessionStatus.COMPLETED, SessionStatus.CANCELLED}
    ),
    SessionStatus.RESCHEDULED: frozenset(
        {SessionStatus.CONFIRMED, SessionStatus.CANCELLED}
    ),
    SessionStatus.COMPLETED: frozenset(),
    SessionStatus.CANCELLED: frozenset(),
    SessionStatus.NO_SHOW: frozenset(),
}

RESCHEDULABLE_STATUSES = frozenset(
    {SessionStatus.REQUESTED, SessionStatus.CONFIRMED, SessionStatus.RESCHEDULED}
)


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: SessionStatus, target: SessionStatus) -> None:
    """Raise IllegalTransitionError unless current -> target is in the table."""
    if not can_transition(current, target):
        raise IllegalTransitionError(
            f"Cannot move session from {current.value} to {target.value}"
        )


def is_emergency(session: Session) -> bool:
    return (
        session.requirements.emergency
        or session.urgency == UrgencyLevel.EMERGENCY
    )


def minimum_notice(session: Session, policy: PolicyConfig) -> timedelta:
    hours = (
        policy.emergency_notice_hours
        if is_emergency(session)
        else policy.standard_notice_hours
    )
    return timedelta(hours=hours)


def has_notice(session: Session, now: datetime, policy: PolicyConfig) -> bool:
    return session.scheduled_start - now >= minimum_notice(session, policy)


def cancellation_blocker(
    session: Session, now: datetime, policy: PolicyConfig
) -> Optional[str]:
    """
    Reason an explicit cancel is refused, or None if it may proceed.

    A session can be cancelled while it is not completed or cancelled and
    the start is at least the minimum notice away (2h for emergency
    sessions, 24h otherwise).
    """
    if session.status in (SessionStatus.COMPLETED, SessionStatus.CANCELLED):
        return f"session is already {session.status.value}"
    if not has_notice(session, now, policy):
        return (
            f"cancellation requires {_hours(minimum_notice(session, policy))}h notice"
        )
    return None


def reschedule_blocker(
    session: Session, now: datetime, policy: PolicyConfig
) -> Optional[str]:
    if session.rescheduled_count >= policy.max_reschedules:
        return f"session was already rescheduled {session.rescheduled_count} times"
    if not has_notice(session, now, policy):
        return (
            f"rescheduling requires {_hours(minimum_notice(session, policy))}h notice"
        )
    return None


def _hours(delta: timedelta) -> str:
    return f"{delta.total_seconds() / 3600:g}"


def apply_transition(
    session: Session,
    target: SessionStatus,
    actor: Actor,
    now: datetime,
    reason: Optional[str] = None,
    category: Optional[CancellationCategory] = None,
) -> Session:
    """
    New session record after moving to target, with its side effects.

    CONFIRMED stamps confirmed_at, IN_PROGRESS stamps actual_start,
    COMPLETED stamps actual_end and reprices on the actual duration,
    CANCELLED records who cancelled, when and why. Interpreter aggregates
    are updated by the caller.
    """
    update: dict = {"status": target, "updated_at": now}

    if target == SessionStatus.CONFIRMED:
        update["confirmed_at"] = now
    elif target == SessionStatus.IN_PROGRESS:
        update["actual_start"] = session.actual_start or now
    elif target == SessionStatus.COMPLETED:
        actual_start = session.actual_start or session.scheduled_start
        actual_end = session.actual_end or now
        actual_duration = max(
            round((actual_end - actual_start).total_seconds() / 60), 0
        )
        update.update(
            actual_start=actual_start,
            actual_end=actual_end,
            actual_duration=actual_duration,
            total_cost=PricingService.prorated_cost(
                actual_duration, session.hourly_rate, session.additional_fees
            ),
        )
    elif target == SessionStatus.CANCELLED:
        update.update(
            cancelled_at=now,
            cancelled_by=actor.user_id,
            cancellation_reason=reason,
            cancellation_category=category,
        )

    return session.model_copy(update=update)
