"""Builders and fixed instants shared by the test suites."""

from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from src.domain.models.booking import BookingRequest
from src.domain.models.interpreter import (
    AvailabilityStatus,
    AvailabilityWindow,
    Interpreter,
    InterpreterStatus,
    LanguageProficiency,
    ProficiencyLevel,
    RateStructure,
    SessionType,
    Specialization,
    SpecializationRate,
)
from src.domain.models.session import Session, SessionStatus

# Monday 2030-01-07 08:00 UTC
FIXED_NOW = datetime(2030, 1, 7, 8, 0, tzinfo=timezone.utc)
# Wednesday 2030-01-09 10:00 UTC, 50 hours after FIXED_NOW
SLOT_START = datetime(2030, 1, 9, 10, 0, tzinfo=timezone.utc)

CLIENT_ID = "client-1"
ADMIN_ID = "admin-1"

ALL_WEEK = [
    AvailabilityWindow(
        day_of_week=day,
        start_time=time(0, 0),
        end_time=time(23, 59, 59),
        timezone="UTC",
    )
    for day in range(7)
]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def build_interpreter(user_id: str, **overrides) -> Interpreter:
    """Active, verified en/es/fr interpreter at $80/h with a x1.6 legal multiplier."""
    data = dict(
        id=f"interp-{user_id}",
        user_id=user_id,
        status=InterpreterStatus.ACTIVE,
        languages=[
            LanguageProficiency(language="en", proficiency_level=ProficiencyLevel.NATIVE),
            LanguageProficiency(language="es", proficiency_level=ProficiencyLevel.FLUENT),
            LanguageProficiency(language="fr", proficiency_level=ProficiencyLevel.ADVANCED),
        ],
        specializations=[Specialization.GENERAL, Specialization.LEGAL],
        supported_session_types=[SessionType.VIDEO, SessionType.PHONE],
        rate_structure=RateStructure(
            hourly_rate=Decimal("80.00"),
            specializations={
                Specialization.LEGAL: SpecializationRate(multiplier=Decimal("1.6"))
            },
        ),
        weekly_schedule=ALL_WEEK,
        current_availability_status=AvailabilityStatus.AVAILABLE,
        is_verified=True,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    data.update(overrides)
    return Interpreter(**data)


def booking_request(**overrides) -> BookingRequest:
    """One-hour standard general video session en->es at SLOT_START."""
    data = dict(
        client_id=CLIENT_ID,
        session_type=SessionType.VIDEO,
        source_language="en",
        target_language="es",
        scheduled_start=SLOT_START,
        estimated_duration=60,
    )
    data.update(overrides)
    return BookingRequest(**data)


def build_session(**overrides) -> Session:
    """REQUESTED one-hour session at SLOT_START priced at $80/h."""
    start = overrides.pop("scheduled_start", SLOT_START)
    duration = overrides.pop("estimated_duration", 60)
    data = dict(
        id="session-1",
        client_id=CLIENT_ID,
        interpreter_id="interp-interp-user-1",
        status=SessionStatus.REQUESTED,
        session_type=SessionType.VIDEO,
        source_language="en",
        target_language="es",
        scheduled_start=start,
        scheduled_end=start + timedelta(minutes=duration),
        estimated_duration=duration,
        hourly_rate=Decimal("80.00"),
        total_cost=Decimal("80.00"),
        pricing_version="2024-01",
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    data.update(overrides)
    return Session(**data)
