"""Who may do what to a session or interpreter profile.

One policy function per operation. Each raises ForbiddenError when the
actor is not allowed; admins pass every check. The assigned interpreter is
identified by the user id behind the session's interpreter record, which
the caller resolves and passes in.
"""

from typing import Optional

from src.core.exceptions import ForbiddenError
from src.domain.models.actor import Actor, UserRole
from src.domain.models.interpreter import Interpreter
from src.domain.models.session import (
    RaterRole,
    Session,
    SessionFilter,
    SessionStatus,
)


def is_session_client(session: Session, actor: Actor) -> bool:
    return actor.user_id == session.client_id


def is_assigned_interpreter(
    interpreter_user_id: Optional[str], actor: Actor
) -> bool:
    return interpreter_user_id is not None and actor.user_id == interpreter_user_id


def check_transition(
    session: Session,
    target: SessionStatus,
    actor: Actor,
    interpreter_user_id: Optional[str],
) -> None:
    """
    Permission to move a session to target.

    CONFIRMED, IN_PROGRESS, COMPLETED, RESCHEDULED: assigned interpreter.
    CANCELLED: assigned interpreter, or the client while REQUESTED/CONFIRMED.
    Anything else: admin only. Clients move a session to a new slot through
    BookingService.reschedule, never through this transition.
    """
    if actor.is_admin:
        return

    is_interpreter = is_assigned_interpreter(interpreter_user_id, actor)
    is_client = is_session_client(session, actor)

    if target in (
        SessionStatus.CONFIRMED,
        SessionStatus.IN_PROGRESS,
        SessionStatus.COMPLETED,
        SessionStatus.RESCHEDULED,
    ):
        allowed = is_interpreter
    elif target == SessionStatus.CANCELLED:
        allowed = is_interpreter or (
            is_client
            and session.status in (SessionStatus.REQUESTED, SessionStatus.CONFIRMED)
        )
    else:
        allowed = False

    if not allowed:
        raise ForbiddenError(
            f"User {actor.user_id} may not move session {session.id} to {target.value}"
        )


def check_cancel(
    session: Session, actor: Actor, interpreter_user_id: Optional[str]
) -> None:
    """
    Ownership gate for an explicit cancel: the client, the assigned
    interpreter or an admin.

    Status-dependent limits are applied after the eligibility rules, so a
    participant cancelling a finished session gets NotEligibleError.
    """
    if actor.is_admin:
        return
    if is_session_client(session, actor) or is_assigned_interpreter(
        interpreter_user_id, actor
    ):
        return
    raise ForbiddenError(f"User {actor.user_id} may not cancel session {session.id}")


def check_reschedule(
    session: Session, actor: Actor, interpreter_user_id: Optional[str]
) -> None:
    if actor.is_admin:
        return
    if is_session_client(session, actor) or is_assigned_interpreter(
        interpreter_user_id, actor
    ):
        return
    raise ForbiddenError(f"User {actor.user_id} may not reschedule session {session.id}")


def check_rate(
    session: Session,
    rater_role: RaterRole,
    actor: Actor,
    interpreter_user_id: Optional[str],
) -> None:
    """Clients rate as client, the assigned interpreter as interpreter."""
    if actor.is_admin:
        return
    if rater_role == RaterRole.CLIENT and is_session_client(session, actor):
        return
    if rater_role == RaterRole.INTERPRETER and is_assigned_interpreter(
        interpreter_user_id, actor
    ):
        return
    raise ForbiddenError(
        f"User {actor.user_id} may not rate session {session.id} as {rater_role.value}"
    )


def check_view_session(
    session: Session, actor: Actor, interpreter_user_id: Optional[str]
) -> None:
    if actor.is_admin:
        return
    if is_session_client(session, actor) or is_assigned_interpreter(
        interpreter_user_id, actor
    ):
        return
    raise ForbiddenError(f"User {actor.user_id} may not view session {session.id}")


def check_self_or_admin(user_id: str, actor: Actor) -> None:
    """Users act for themselves (booking, registering); admins for anyone."""
    if actor.is_admin or actor.user_id == user_id:
        return
    raise ForbiddenError(f"User {actor.user_id} may not act on behalf of {user_id}")


def check_profile_owner(interpreter: Interpreter, actor: Actor) -> None:
    if actor.is_admin or actor.user_id == interpreter.user_id:
        return
    raise ForbiddenError(
        f"User {actor.user_id} may not modify interpreter {interpreter.id}"
    )


def check_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise ForbiddenError("Administrator role required")


def check_rate_override(actor: Optional[Actor]) -> None:
    """Only admins may price a session off the interpreter's rate structure."""
    if actor is not None and actor.is_admin:
        return
    raise ForbiddenError("Administrator role required to set a custom hourly rate")


def restrict_session_filter(
    criteria: SessionFilter, actor: Actor, own_interpreter_id: Optional[str]
) -> Optional[SessionFilter]:
    """
    Narrow a session listing to what the actor may see.

    Clients see their own bookings and interpreters their assignments;
    asking for someone else's is forbidden. Returns None when nothing is
    visible (an interpreter account without a profile).
    """
    if actor.is_admin:
        return criteria
    if actor.role == UserRole.INTERPRETER:
        if own_interpreter_id is None:
            return None
        if criteria.interpreter_id not in (None, own_interpreter_id):
            raise ForbiddenError(
                f"User {actor.user_id} may only list their own assignments"
            )
        return criteria.model_copy(update={"interpreter_id": own_interpreter_id})
    if criteria.client_id not in (None, actor.user_id):
        raise ForbiddenError(f"User {actor.user_id} may only list their own bookings")
    return criteria.model_copy(update={"client_id": actor.user_id})
