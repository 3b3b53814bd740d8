"""Interpreter domain models.

Immutable records describing an interpreter's capabilities, commercial
terms, weekly schedule and running aggregates. Behaviour that used to sit on
the entity (availability lookup, rate lookup, rating update) lives in the
availability, pricing and rating services instead.

Aggregates (total_sessions_completed, average_rating, total_ratings,
total_earnings) are owned by the store and only change through atomic
increments issued by BookingService and RatingService.
"""

from datetime import time
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator, model_validator

from src.domain.models.common import UTCDateTime, utc_now


class InterpreterStatus(str, Enum):
    """Account lifecycle status."""

    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class Specialization(str, Enum):
    MEDICAL = "medical"
    LEGAL = "legal"
    BUSINESS = "business"
    TECHNICAL = "technical"
    ACADEMIC = "academic"
    GOVERNMENT = "government"
    CONFERENCE = "conference"
    COMMUNITY = "community"
    GENERAL = "general"


class SessionType(str, Enum):
    IN_PERSON = "in_person"
    PHONE = "phone"
    VIDEO = "video"


class AvailabilityStatus(str, Enum):
    """Live presence status set by the interpreter."""

    AVAILABLE = "available"
    BUSY = "busy"
    BREAK = "break"
    OFFLINE = "offline"


class ProficiencyLevel(str, Enum):
    NATIVE = "native"
    FLUENT = "fluent"
    ADVANCED = "advanced"
    INTERMEDIATE = "intermediate"


class LanguageProficiency(BaseModel):
    """One language an interpreter works in."""

    model_config = {"frozen": True}

    language: str = Field(min_length=2, max_length=10)
    proficiency_level: ProficiencyLevel
    certifications: List[str] = Field(default_factory=list)


class AvailabilityWindow(BaseModel):
    """Recurring weekly working window.

    day_of_week follows 0 = Sunday ... 6 = Saturday. The window is closed on
    both ends and expressed in the window's own timezone.
    """

    model_config = {"frozen": True}

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def window_not_inverted(self) -> "AvailabilityWindow":
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class SessionTypeRate(BaseModel):
    """Per-session-type override of the base hourly rate."""

    model_config = {"frozen": True}

    rate: Decimal
    minimum_duration: int = 30


class SpecializationRate(BaseModel):
    model_config = {"frozen": True}

    multiplier: Decimal = Field(gt=0)


class RateStructure(BaseModel):
    """Commercial terms of an interpreter.

    Floors (minimum hourly rate, minimum durations) are enforced by
    InterpreterService against the active PolicyConfig / PricingConfig.
    """

    model_config = {"frozen": True}

    hourly_rate: Decimal
    minimum_hours: int = 1
    session_types: Dict[SessionType, SessionTypeRate] = Field(default_factory=dict)
    specializations: Dict[Specialization, SpecializationRate] = Field(
        default_factory=dict
    )


class InterpreterProfile(BaseModel):
    """Registration payload for a new interpreter."""

    user_id: str
    languages: List[LanguageProficiency]
    specializations: List[Specialization] = Field(
        default_factory=lambda: [Specialization.GENERAL]
    )
    supported_session_types: List[SessionType] = Field(
        default_factory=lambda: [SessionType.PHONE, SessionType.VIDEO]
    )
    rate_structure: RateStructure
    weekly_schedule: List[AvailabilityWindow] = Field(default_factory=list)
    bio: Optional[str] = None


class InterpreterUpdate(BaseModel):
    """Partial profile update. Aggregates are deliberately absent."""

    languages: Optional[List[LanguageProficiency]] = None
    specializations: Optional[List[Specialization]] = None
    supported_session_types: Optional[List[SessionType]] = None
    rate_structure: Optional[RateStructure] = None
    weekly_schedule: Optional[List[AvailabilityWindow]] = None
    bio: Optional[str] = None


class Interpreter(BaseModel):
    """Interpreter record as read from the store."""

    model_config = {"frozen": True, "from_attributes": True}

    id: str
    user_id: str
    status: InterpreterStatus = InterpreterStatus.PENDING_APPROVAL
    languages: List[LanguageProficiency]
    specializations: List[Specialization]
    supported_session_types: List[SessionType]
    rate_structure: RateStructure
    weekly_schedule: List[AvailabilityWindow] = Field(default_factory=list)
    current_availability_status: AvailabilityStatus = AvailabilityStatus.OFFLINE
    bio: Optional[str] = None
    is_verified: bool = False
    background_check_completed: bool = False

    # Aggregates
    total_sessions_completed: int = Field(default=0, ge=0)
    average_rating: float = Field(default=0.0, ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    total_earnings: Decimal = Field(default=Decimal("0.00"), ge=0)

    last_active_at: Optional[UTCDateTime] = None
    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)
    version: int = 1

    def language_codes(self) -> frozenset:
        return frozenset(lang.language for lang in self.languages)


class InterpreterStatistics(BaseModel):
    """Summary of an interpreter's record."""

    interpreter_id: str
    total_sessions: int
    average_rating: float
    total_ratings: int
    total_earnings: Decimal
    is_verified: bool
    status: InterpreterStatus
    current_availability_status: AvailabilityStatus
    specializations: List[Specialization]
    supported_languages: List[str]
    joined_at: UTCDateTime
    last_active_at: Optional[UTCDateTime] = None


class InterpreterFilter(BaseModel):
    """Directory search over interpreter profiles.

    List filters match when any listed value matches. max_rate compares
    against the base hourly rate. available_at keeps only interpreters who
    are live AVAILABLE and whose weekly schedule covers that instant.
    """

    model_config = {"frozen": True}

    languages: List[str] = Field(default_factory=list)
    specializations: List[Specialization] = Field(default_factory=list)
    session_type: Optional[SessionType] = None
    status: Optional[InterpreterStatus] = None
    is_verified: Optional[bool] = None
    min_rating: Optional[float] = Field(default=None, ge=0, le=5)
    max_rate: Optional[Decimal] = Field(default=None, ge=0)
    available_at: Optional[UTCDateTime] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class InterpreterPage(BaseModel):
    interpreters: List[Interpreter]
    total: int
    page: int
    limit: int
