"""
Interpreter profile management.

Registration, profile edits, live availability and account status. Profile
writes never touch the aggregates (sessions completed, rating, earnings);
those are owned by BookingService and RatingService.
"""

from datetime import datetime
from typing import Callable, List, Optional
from uuid import uuid4

import structlog

from src.core.config import PolicyConfig, booking_config
from src.core.exceptions import (
    ConflictError,
    InterpreterNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from src.domain.models.actor import Actor, UserRole
from src.domain.models.common import utc_now
from src.domain.models.interpreter import (
    AvailabilityStatus,
    Interpreter,
    InterpreterFilter,
    InterpreterPage,
    InterpreterProfile,
    InterpreterStatistics,
    InterpreterStatus,
    InterpreterUpdate,
    LanguageProficiency,
    RateStructure,
)
from src.persistence.database import transaction
from src.persistence.repositories.interpreter_repo import InterpreterRepository
from src.persistence.repositories.user_repo import UserRepository
from src.services import permissions
from src.services.availability import is_available_at
from src.services.pricing_service import PricingService

log = structlog.get_logger(__name__)


class InterpreterService:
    """Registers interpreters and maintains their profiles."""

    def __init__(
        self,
        db_path: str,
        interpreter_repo: Optional[InterpreterRepository] = None,
        user_repo: Optional[UserRepository] = None,
        pricing: Optional[PricingService] = None,
        policy: Optional[PolicyConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db_path = db_path
        self.interpreter_repo = interpreter_repo or InterpreterRepository(db_path)
        self.user_repo = user_repo or UserRepository(db_path)
        self.pricing = pricing or PricingService()
        self.policy = policy or booking_config.policy
        self.clock = clock

    async def register(
        self, profile: InterpreterProfile, actor: Optional[Actor] = None
    ) -> Interpreter:
        """
        Create an interpreter profile for an existing interpreter user.

        New profiles start pending approval, offline and unverified with
        zeroed aggregates.

        Raises:
            ValidationError: Languages or rates fail the platform rules
            UserNotFoundError: user_id is not an interpreter user
            ConflictError: The user already has a profile
        """
        if actor is not None:
            permissions.check_self_or_admin(profile.user_id, actor)
        self._validate_languages(profile.languages)
        self._validate_rates(profile.rate_structure)
        if not profile.supported_session_types:
            raise ValidationError("At least one session type is required")
        if not profile.specializations:
            raise ValidationError("At least one specialization is required")

        now = self.clock()
        async with transaction(self.db_path) as db:
            user = await self.user_repo.get(profile.user_id, db=db)
            if user is None or user.role != UserRole.INTERPRETER:
                raise UserNotFoundError(f"Interpreter user {profile.user_id} not found")

            existing = await self.interpreter_repo.get_by_user_id(profile.user_id, db=db)
            if existing is not None:
                raise ConflictError(
                    f"User {profile.user_id} already has interpreter profile {existing.id}"
                )

            interpreter = Interpreter(
                id=str(uuid4()),
                user_id=profile.user_id,
                status=InterpreterStatus.PENDING_APPROVAL,
                languages=profile.languages,
                specializations=profile.specializations,
                supported_session_types=profile.supported_session_types,
                rate_structure=profile.rate_structure,
                weekly_schedule=profile.weekly_schedule,
                current_availability_status=AvailabilityStatus.OFFLINE,
                bio=profile.bio,
                created_at=now,
                updated_at=now,
            )
            await self.interpreter_repo.create(interpreter, db=db)

        log.info(
            "interpreter_registered",
            interpreter_id=interpreter.id,
            user_id=interpreter.user_id,
            languages=sorted(interpreter.language_codes()),
        )
        return interpreter

    async def get(self, interpreter_id: str) -> Interpreter:
        interpreter = await self.interpreter_repo.get(interpreter_id)
        if interpreter is None:
            raise InterpreterNotFoundError(f"Interpreter {interpreter_id} not found")
        return interpreter

    async def get_by_user_id(self, user_id: str) -> Interpreter:
        interpreter = await self.interpreter_repo.get_by_user_id(user_id)
        if interpreter is None:
            raise InterpreterNotFoundError(f"No interpreter profile for user {user_id}")
        return interpreter

    async def search(self, criteria: InterpreterFilter) -> InterpreterPage:
        """
        Directory search, verified and best rated first.

        Weekly schedule coverage for available_at cannot be expressed in
        SQL, so that filter pages in memory over the full match set.
        """
        if criteria.available_at is None:
            interpreters, total = await self.interpreter_repo.search(criteria)
        else:
            matches, _ = await self.interpreter_repo.search(criteria, paginate=False)
            matches = [
                interpreter
                for interpreter in matches
                if is_available_at(interpreter.weekly_schedule, criteria.available_at)
            ]
            total = len(matches)
            offset = (criteria.page - 1) * criteria.limit
            interpreters = matches[offset : offset + criteria.limit]

        log.debug("interpreter_search", total=total, page=criteria.page)
        return InterpreterPage(
            interpreters=interpreters,
            total=total,
            page=criteria.page,
            limit=criteria.limit,
        )

    async def update_profile(
        self, interpreter_id: str, update: InterpreterUpdate, actor: Actor
    ) -> Interpreter:
        """Apply a partial profile update (owner or admin)."""
        changes = {
            field: getattr(update, field)
            for field in update.model_fields_set
            if getattr(update, field) is not None
        }

        if "languages" in changes:
            self._validate_languages(changes["languages"])
        if "rate_structure" in changes:
            self._validate_rates(changes["rate_structure"])
        if changes.get("supported_session_types") == []:
            raise ValidationError("At least one session type is required")
        if changes.get("specializations") == []:
            raise ValidationError("At least one specialization is required")

        async with transaction(self.db_path) as db:
            current = await self._get_for_update(interpreter_id, db)
            permissions.check_profile_owner(current, actor)
            updated = current.model_copy(
                update={**changes, "updated_at": self.clock()}
            )
            saved = await self.interpreter_repo.update_profile(
                updated, current.version, db=db
            )

        log.info(
            "interpreter_profile_updated",
            interpreter_id=interpreter_id,
            fields=sorted(changes),
            actor_id=actor.user_id,
        )
        return saved

    async def update_availability_status(
        self, interpreter_id: str, status: AvailabilityStatus, actor: Actor
    ) -> Interpreter:
        """Set live presence status (owner or admin) and stamp last activity."""
        now = self.clock()
        async with transaction(self.db_path) as db:
            current = await self._get_for_update(interpreter_id, db)
            permissions.check_profile_owner(current, actor)
            updated = current.model_copy(
                update={
                    "current_availability_status": status,
                    "last_active_at": now,
                    "updated_at": now,
                }
            )
            saved = await self.interpreter_repo.update_profile(
                updated, current.version, db=db
            )

        log.info(
            "interpreter_availability_changed",
            interpreter_id=interpreter_id,
            status=status.value,
        )
        return saved

    async def update_status(
        self, interpreter_id: str, status: InterpreterStatus, actor: Actor
    ) -> Interpreter:
        """Change account status (admin only). Activation also verifies."""
        permissions.check_admin(actor)
        async with transaction(self.db_path) as db:
            current = await self._get_for_update(interpreter_id, db)
            update = {"status": status, "updated_at": self.clock()}
            if status == InterpreterStatus.ACTIVE:
                update["is_verified"] = True
            updated = current.model_copy(update=update)
            saved = await self.interpreter_repo.update_profile(
                updated, current.version, db=db
            )

        log.info(
            "interpreter_status_changed",
            interpreter_id=interpreter_id,
            from_status=current.status.value,
            to_status=status.value,
            actor_id=actor.user_id,
        )
        return saved

    async def get_statistics(self, interpreter_id: str) -> InterpreterStatistics:
        interpreter = await self.get(interpreter_id)
        return InterpreterStatistics(
            interpreter_id=interpreter.id,
            total_sessions=interpreter.total_sessions_completed,
            average_rating=round(interpreter.average_rating, 2),
            total_ratings=interpreter.total_ratings,
            total_earnings=interpreter.total_earnings,
            is_verified=interpreter.is_verified,
            status=interpreter.status,
            current_availability_status=interpreter.current_availability_status,
            specializations=interpreter.specializations,
            supported_languages=sorted(interpreter.language_codes()),
            joined_at=interpreter.created_at,
            last_active_at=interpreter.last_active_at,
        )

    async def _get_for_update(self, interpreter_id: str, db) -> Interpreter:
        interpreter = await self.interpreter_repo.get(interpreter_id, db=db)
        if interpreter is None:
            raise InterpreterNotFoundError(f"Interpreter {interpreter_id} not found")
        return interpreter

    def _validate_languages(self, languages: List[LanguageProficiency]) -> None:
        codes = [lang.language for lang in languages]
        if len(set(codes)) != len(codes):
            raise ValidationError("Each language may be listed only once")
        if len(codes) < self.policy.min_interpreter_languages:
            raise ValidationError(
                f"At least {self.policy.min_interpreter_languages} languages are required"
            )
        known = self.pricing.config.language_tiers.all_codes()
        unknown = sorted(set(codes) - known)
        if unknown:
            raise ValidationError(f"Unsupported language code(s): {', '.join(unknown)}")

    def _validate_rates(self, rates: RateStructure) -> None:
        self.pricing.check_hourly_rate(rates.hourly_rate)
        if rates.minimum_hours < 1:
            raise ValidationError("minimum_hours must be at least 1")
        for session_type, type_rate in rates.session_types.items():
            self.pricing.check_hourly_rate(type_rate.rate)
            if type_rate.minimum_duration < self.policy.min_session_type_duration:
                raise ValidationError(
                    f"Minimum duration for {session_type.value} sessions must be at "
                    f"least {self.policy.min_session_type_duration} minutes"
                )
