"""
Booking orchestration service.

Creates sessions and drives them through their lifecycle. Every mutating
operation is one write transaction (see src.persistence.database.transaction):
the conflict check, the session write and any interpreter aggregate update
commit together or not at all.

Operations:
    - create_session: validate, pick or verify the interpreter, price, insert
    - transition_status: generic state-machine move with role gating
    - cancel: notice-window gated cancellation
    - reschedule: move to a new slot, re-checking availability and conflicts
    - get_session / get_upcoming_sessions / get_session_statistics: reads
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import uuid4

import aiosqlite
import structlog

from src.core.config import PolicyConfig, booking_config
from src.core.exceptions import (
    ClientNotFoundError,
    IllegalTransitionError,
    InterpreterNotFoundError,
    InterpreterUnavailableError,
    NoInterpreterAvailableError,
    NotEligibleError,
    SessionNotFoundError,
    ValidationError,
)
from src.domain.models.actor import Actor, UserRole
from src.domain.models.booking import BookingRequest, MatchCriteria
from src.domain.models.common import utc_now
from src.domain.models.interpreter import Interpreter
from src.domain.models.session import (
    CancellationCategory,
    Session,
    SessionFilter,
    SessionPage,
    SessionStatistics,
    SessionStatus,
)
from src.persistence.database import transaction
from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.persistence.repositories.session_repo import SessionRepository
from src.persistence.repositories.user_repo import UserRepository
from src.services import permissions
from src.services.availability import qualification_failure
from src.services.conflict_detector import ConflictDetector
from src.services.matching_service import MatchingService
from src.services.pricing_service import PricingService
from src.services.session_state_machine import (
    RESCHEDULABLE_STATUSES,
    apply_transition,
    cancellation_blocker,
    ensure_transition,
    reschedule_blocker,
)

log = structlog.get_logger(__name__)

UPCOMING_STATUSES = (SessionStatus.REQUESTED, SessionStatus.CONFIRMED)


class BookingService:
    """
    Session lifecycle operations over the SQLite store.

    The clock is injectable so notice windows and "in the future" checks
    can be tested against fixed instants.
    """

    def __init__(
        self,
        db_path: str,
        session_repo: Optional[SessionRepository] = None,
        interpreter_repo: Optional[InterpreterRepository] = None,
        user_repo: Optional[UserRepository] = None,
        pricing: Optional[PricingService] = None,
        policy: Optional[PolicyConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_path = db_path
        self.session_repo = session_repo or SessionRepository(db_path)
        self.interpreter_repo = interpreter_repo or InterpreterRepository(db_path)
        self.user_repo = user_repo or UserRepository(db_path)
        self.pricing = pricing or PricingService()
        self.policy = policy or booking_config.policy
        self.clock = clock

        self.conflicts = ConflictDetector(self.session_repo)
        self.matching = MatchingService(self.interpreter_repo)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_session(
        self, request: BookingRequest, actor: Optional[Actor] = None
    ) -> Session:
        """
        Book a session in REQUESTED state.

        With request.interpreter_id the named interpreter must qualify for
        the slot and be free; otherwise the best ranked free candidate is
        assigned.

        Args:
            request: Booking details
            actor: Caller; when given must be the client or an admin
                and, to set hourly_rate, an admin

        Returns:
            The stored session

        Raises:
            ValidationError: Bad duration, past start, unknown languages,
                negative fees, rate below floor
            ForbiddenError: Booking for another client, or a custom rate
                without an admin actor
            ClientNotFoundError: client_id is not a client
            InterpreterNotFoundError: Named interpreter does not exist
            InterpreterUnavailableError: Named interpreter cannot take the slot
            SchedulingConflictError: Named interpreter is already booked
            NoInterpreterAvailableError: No candidate is free
        """
        now = self.clock()
        self._validate_request(request, now)
        if actor is not None:
            permissions.check_self_or_admin(request.client_id, actor)
        if request.hourly_rate is not None:
            permissions.check_rate_override(actor)

        criteria = request.match_criteria()
        scheduled_end = request.scheduled_start + timedelta(
            minutes=request.estimated_duration
        )

        candidates: List[Interpreter] = []
        if request.interpreter_id is None:
            candidates = await self.matching.find_candidates(criteria)

        async with transaction(self.db_path) as db:
            client = await self.user_repo.get(request.client_id, db=db)
            if client is None or client.role != UserRole.CLIENT:
                raise ClientNotFoundError(f"Client {request.client_id} not found")

            if request.interpreter_id is not None:
                interpreter = await self._get_interpreter(request.interpreter_id, db)
                reason = qualification_failure(interpreter, criteria)
                if reason is not None:
                    raise InterpreterUnavailableError(
                        f"Interpreter {interpreter.id} unavailable: {reason}"
                    )
                await self.conflicts.ensure_free(
                    interpreter.id, request.scheduled_start, scheduled_end, db=db
                )
            else:
                interpreter = await self._first_free(
                    candidates, request.scheduled_start, scheduled_end, db
                )

            if request.hourly_rate is not None:
                hourly_rate = request.hourly_rate
            else:
                hourly_rate = self.pricing.effective_hourly_rate(
                    interpreter.rate_structure,
                    request.session_type,
                    request.specialization,
                    request.urgency,
                )
            total_cost = self.pricing.session_cost(
                request.estimated_duration, hourly_rate, request.additional_fees
            )

            session = Session(
                id=str(uuid4()),
                client_id=request.client_id,
                interpreter_id=interpreter.id,
                status=SessionStatus.REQUESTED,
                session_type=request.session_type,
                specialization=request.specialization,
                urgency=request.urgency,
                source_language=request.source_language,
                target_language=request.target_language,
                scheduled_start=request.scheduled_start,
                scheduled_end=scheduled_end,
                estimated_duration=request.estimated_duration,
                location=request.location,
                requirements=request.requirements,
                recording_permitted=request.recording_permitted,
                hourly_rate=hourly_rate,
                additional_fees=request.additional_fees,
                total_cost=total_cost,
                pricing_version=self.pricing.version,
                created_at=now,
                updated_at=now,
            )
            await self.session_repo.create(session, db=db)

        log.info(
            "session_created",
            session_id=session.id,
            client_id=session.client_id,
            interpreter_id=session.interpreter_id,
            scheduled_start=session.scheduled_start.isoformat(),
            duration=session.estimated_duration,
            total_cost=str(session.total_cost),
            auto_assigned=request.interpreter_id is None,
        )
        return session

    def _validate_request(self, request: BookingRequest, now: datetime) -> None:
        if request.estimated_duration < self.policy.min_session_duration:
            raise ValidationError(
                f"Session duration must be at least "
                f"{self.policy.min_session_duration} minute(s)"
            )
        if request.scheduled_start <= now:
            raise ValidationError("Session must be scheduled in the future")
        self.pricing.validate_languages(
            request.source_language, request.target_language
        )
        if request.additional_fees < 0:
            raise ValidationError("Additional fees cannot be negative")
        if request.hourly_rate is not None:
            self.pricing.check_hourly_rate(request.hourly_rate)

    async def _first_free(
        self,
        candidates: List[Interpreter],
        start: datetime,
        end: datetime,
        db: aiosqlite.Connection,
    ) -> Interpreter:
        for candidate in candidates:
            if not await self.conflicts.has_conflict(candidate.id, start, end, db=db):
                return candidate
        raise NoInterpreterAvailableError(
            "No qualified interpreter is free for the requested slot"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def transition_status(
        self,
        session_id: str,
        target: SessionStatus,
        actor: Actor,
        reason: Optional[str] = None,
        category: Optional[CancellationCategory] = None,
    ) -> Session:
        """
        Move a session to target status.

        Confirmation re-runs the conflict check. Completion reprices on the
        actual duration and credits the interpreter in the same transaction.
        Cancelling here obeys the same notice window as cancel(), except
        for admins and for sessions already in progress.

        Raises:
            SessionNotFoundError: Unknown session
            IllegalTransitionError: target not reachable from current status
            ForbiddenError: Actor's role does not allow this transition
            NotEligibleError: Cancelling inside the notice window
            SchedulingConflictError: Confirming would double-book
            ConcurrentModificationError: Session changed underneath
        """
        async with transaction(self.db_path) as db:
            session = await self._get_session(session_id, db)
            ensure_transition(session.status, target)

            interpreter_user_id = await self._interpreter_user_id(session, db)
            permissions.check_transition(session, target, actor, interpreter_user_id)

            if target == SessionStatus.CANCELLED:
                blocker = self._transition_cancel_blocker(session, actor)
                if blocker is not None:
                    raise NotEligibleError(
                        f"Session {session_id} cannot be cancelled: {blocker}"
                    )

            if target == SessionStatus.CONFIRMED and session.interpreter_id:
                await self.conflicts.ensure_free(
                    session.interpreter_id,
                    session.scheduled_start,
                    session.scheduled_end,
                    exclude_session_id=session.id,
                    db=db,
                )

            updated = apply_transition(
                session, target, actor, self.clock(), reason=reason, category=category
            )
            saved = await self.session_repo.update(updated, session.version, db=db)

            if target == SessionStatus.COMPLETED and saved.interpreter_id:
                await self.interpreter_repo.record_completion(
                    saved.interpreter_id, saved.total_cost, db=db
                )

        log.info(
            "session_transitioned",
            session_id=session_id,
            from_status=session.status.value,
            to_status=target.value,
            actor_id=actor.user_id,
            actor_role=actor.role.value,
        )
        return saved

    async def cancel(
        self,
        session_id: str,
        reason: Optional[str],
        category: Optional[CancellationCategory],
        actor: Actor,
    ) -> Session:
        """
        Cancel a session subject to the notice window.

        Raises:
            ForbiddenError: Actor may not cancel this session
            NotEligibleError: Too close to start, or already completed/cancelled
            IllegalTransitionError: Status cannot move to CANCELLED
        """
        async with transaction(self.db_path) as db:
            session = await self._get_session(session_id, db)
            interpreter_user_id = await self._interpreter_user_id(session, db)
            permissions.check_cancel(session, actor, interpreter_user_id)

            blocker = cancellation_blocker(session, self.clock(), self.policy)
            if blocker is not None:
                raise NotEligibleError(f"Session {session_id} cannot be cancelled: {blocker}")
            ensure_transition(session.status, SessionStatus.CANCELLED)
            permissions.check_transition(
                session, SessionStatus.CANCELLED, actor, interpreter_user_id
            )

            updated = apply_transition(
                session,
                SessionStatus.CANCELLED,
                actor,
                self.clock(),
                reason=reason,
                category=category,
            )
            saved = await self.session_repo.update(updated, session.version, db=db)

        log.info(
            "session_cancelled",
            session_id=session_id,
            actor_id=actor.user_id,
            category=category.value if category else None,
        )
        return saved

    async def reschedule(
        self,
        session_id: str,
        new_start: datetime,
        new_duration: Optional[int],
        reason: Optional[str],
        actor: Actor,
    ) -> Session:
        """
        Move a session to a new slot and mark it CONFIRMED.

        Args:
            session_id: Session to move
            new_start: New scheduled start
            new_duration: New length in minutes; None keeps the current one
            reason: Appended to the session notes
            actor: Client, assigned interpreter or admin

        Raises:
            ValidationError: Bad duration or start in the past
            IllegalTransitionError: Session is not REQUESTED/CONFIRMED/RESCHEDULED
            NotEligibleError: Notice window or reschedule cap exceeded
            InterpreterUnavailableError: Interpreter cannot take the new slot
            SchedulingConflictError: New slot overlaps another booking
        """
        now = self.clock()
        if new_start.tzinfo is None:
            new_start = new_start.replace(tzinfo=timezone.utc)
        if new_duration is not None and new_duration < self.policy.min_session_duration:
            raise ValidationError("Session duration must be positive")
        if new_start <= now:
            raise ValidationError("Session must be rescheduled into the future")

        async with transaction(self.db_path) as db:
            session = await self._get_session(session_id, db)
            interpreter_user_id = await self._interpreter_user_id(session, db)
            permissions.check_reschedule(session, actor, interpreter_user_id)

            if session.status not in RESCHEDULABLE_STATUSES:
                raise IllegalTransitionError(
                    f"Cannot reschedule a {session.status.value} session"
                )
            blocker = reschedule_blocker(session, now, self.policy)
            if blocker is not None:
                raise NotEligibleError(
                    f"Session {session_id} cannot be rescheduled: {blocker}"
                )

            duration = new_duration or session.estimated_duration
            new_end = new_start + timedelta(minutes=duration)

            if session.interpreter_id:
                interpreter = await self._get_interpreter(session.interpreter_id, db)
                reason_unavailable = qualification_failure(
                    interpreter,
                    _criteria_for(session, new_start, duration),
                )
                if reason_unavailable is not None:
                    raise InterpreterUnavailableError(
                        f"Interpreter {interpreter.id} unavailable: {reason_unavailable}"
                    )
                await self.conflicts.ensure_free(
                    session.interpreter_id,
                    new_start,
                    new_end,
                    exclude_session_id=session.id,
                    db=db,
                )

            note = f"Rescheduled by {actor.user_id}: {reason or 'no reason given'}"
            notes = f"{session.session_notes}\n{note}" if session.session_notes else note

            update = {
                "scheduled_start": new_start,
                "scheduled_end": new_end,
                "estimated_duration": duration,
                "rescheduled_count": session.rescheduled_count + 1,
                "is_rescheduled": True,
                "status": SessionStatus.CONFIRMED,
                "confirmed_at": session.confirmed_at or now,
                "session_notes": notes,
                "updated_at": now,
            }
            if duration != session.estimated_duration:
                update["total_cost"] = self.pricing.prorated_cost(
                    duration, session.hourly_rate, session.additional_fees
                )

            updated = session.model_copy(update=update)
            saved = await self.session_repo.update(updated, session.version, db=db)

        log.info(
            "session_rescheduled",
            session_id=session_id,
            actor_id=actor.user_id,
            new_start=new_start.isoformat(),
            duration=duration,
            rescheduled_count=saved.rescheduled_count,
        )
        return saved

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_session(
        self, session_id: str, actor: Optional[Actor] = None
    ) -> Session:
        """Get a session; with an actor, only participants and admins may see it."""
        session = await self._get_session(session_id)
        if actor is not None:
            interpreter_user_id = await self._interpreter_user_id(session)
            permissions.check_view_session(session, actor, interpreter_user_id)
        return session

    async def get_upcoming_sessions(
        self, actor: Actor, now: Optional[datetime] = None
    ) -> List[Session]:
        """
        REQUESTED or CONFIRMED sessions starting before the end of tomorrow.

        Clients see their own bookings, interpreters their assignments,
        admins everything.
        """
        now = now or self.clock()
        end_of_tomorrow = datetime.combine(
            now.astimezone(timezone.utc).date() + timedelta(days=2),
            datetime.min.time(),
            tzinfo=timezone.utc,
        )
        scope = await self._scope_for(actor)
        if scope is None:
            return []
        return await self.session_repo.list_upcoming(
            now, end_of_tomorrow, UPCOMING_STATUSES, **scope
        )

    async def list_sessions(self, criteria: SessionFilter, actor: Actor) -> SessionPage:
        """
        One page of sessions matching the filter, latest start first.

        Non-admins are confined to their own sessions; see
        permissions.restrict_session_filter.

        Raises:
            ValidationError: If date_from is after date_to
            ForbiddenError: If the filter names another client or interpreter
        """
        if (
            criteria.date_from is not None
            and criteria.date_to is not None
            and criteria.date_from > criteria.date_to
        ):
            raise ValidationError("date_from must not be after date_to")

        own_interpreter_id = None
        if actor.role == UserRole.INTERPRETER:
            interpreter = await self.interpreter_repo.get_by_user_id(actor.user_id)
            own_interpreter_id = interpreter.id if interpreter else None

        scoped = permissions.restrict_session_filter(
            criteria, actor, own_interpreter_id
        )
        if scoped is None:
            sessions, total = [], 0
        else:
            sessions, total = await self.session_repo.search(scoped)
        return SessionPage(
            sessions=sessions, total=total, page=criteria.page, limit=criteria.limit
        )

    async def get_session_statistics(self, actor: Actor) -> SessionStatistics:
        """Counts and completion/cancellation percentages for the actor."""
        scope = await self._scope_for(actor)
        if scope is None:
            counts = {"total": 0, "completed": 0, "cancelled": 0, "upcoming": 0}
        else:
            counts = await self.session_repo.count_statistics(self.clock(), **scope)

        total = counts["total"]
        return SessionStatistics(
            total_sessions=total,
            completed_sessions=counts["completed"],
            cancelled_sessions=counts["cancelled"],
            upcoming_sessions=counts["upcoming"],
            completion_rate=_percent(counts["completed"], total),
            cancellation_rate=_percent(counts["cancelled"], total),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition_cancel_blocker(
        self, session: Session, actor: Actor
    ) -> Optional[str]:
        # A running session is past its start, so the notice rule cannot apply
        if actor.is_admin or session.status == SessionStatus.IN_PROGRESS:
            return None
        return cancellation_blocker(session, self.clock(), self.policy)

    async def _scope_for(self, actor: Actor) -> Optional[dict]:
        """Repository filter for the actor, or None if nothing is visible."""
        if actor.is_admin:
            return {}
        if actor.role == UserRole.INTERPRETER:
            interpreter = await self.interpreter_repo.get_by_user_id(actor.user_id)
            if interpreter is None:
                return None
            return {"interpreter_id": interpreter.id}
        return {"client_id": actor.user_id}

    async def _get_session(
        self, session_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Session:
        session = await self.session_repo.get(session_id, db=db)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def _get_interpreter(
        self, interpreter_id: str, db: Optional[aiosqlite.Connection] = None
    ) -> Interpreter:
        interpreter = await self.interpreter_repo.get(interpreter_id, db=db)
        if interpreter is None:
            raise InterpreterNotFoundError(f"Interpreter {interpreter_id} not found")
        return interpreter

    async def _interpreter_user_id(
        self, session: Session, db: Optional[aiosqlite.Connection] = None
    ) -> Optional[str]:
        if session.interpreter_id is None:
            return None
        interpreter = await self.interpreter_repo.get(session.interpreter_id, db=db)
        return interpreter.user_id if interpreter else None


def _criteria_for(session: Session, start: datetime, duration: int) -> MatchCriteria:
    return MatchCriteria(
        source_language=session.source_language,
        target_language=session.target_language,
        session_type=session.session_type,
        specialization=session.specialization,
        scheduled_start=start,
        duration_minutes=duration,
    )


def _percent(part: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(part / total * 100, 1)
