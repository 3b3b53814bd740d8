"""Session domain models for interpretation booking lifecycle.

This module defines the records for a booked interpretation session and
its ratings.

Core Models:
    - Session: One bookable engagement between a client and an interpreter
    - SessionRating: A one-time rating left by the client or the interpreter
    - SessionLocation / SessionRequirements: Booking details carried along

Session Lifecycle:
    REQUESTED   -> CONFIRMED, CANCELLED
    CONFIRMED   -> IN_PROGRESS, CANCELLED, RESCHEDULED
    IN_PROGRESS -> COMPLETED, CANCELLED
    RESCHEDULED -> CONFIRMED, CANCELLED
    COMPLETED, CANCELLED, NO_SHOW are terminal

The transition table and side effects live in
src.services.session_state_machine; records here carry data only.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from src.domain.models.common import UTCDateTime, utc_now
from src.domain.models.interpreter import SessionType, Specialization
from src.domain.models.pricing import UrgencyLevel


class SessionStatus(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    RESCHEDULED = "rescheduled"


TERMINAL_STATUSES = frozenset(
    {SessionStatus.COMPLETED, SessionStatus.CANCELLED, SessionStatus.NO_SHOW}
)

# Statuses that occupy an interpreter's time slot
BLOCKING_STATUSES = frozenset({SessionStatus.CONFIRMED, SessionStatus.IN_PROGRESS})


class CancellationCategory(str, Enum):
    CLIENT_REQUEST = "client_request"
    INTERPRETER_UNAVAILABLE = "interpreter_unavailable"
    TECHNICAL_ISSUES = "technical_issues"
    EMERGENCY = "emergency"
    NO_SHOW = "no_show"
    OTHER = "other"


class RaterRole(str, Enum):
    CLIENT = "client"
    INTERPRETER = "interpreter"


class LocationType(str, Enum):
    ADDRESS = "address"
    ONLINE = "online"
    PHONE = "phone"


class Address(BaseModel):
    model_config = {"frozen": True}

    street: str
    city: str
    state: str
    zip_code: str
    country: str
    additional_info: Optional[str] = None


class SessionLocation(BaseModel):
    """Where the session takes place."""

    model_config = {"frozen": True}

    type: LocationType = LocationType.ONLINE
    address: Optional[Address] = None
    meeting_url: Optional[str] = None
    phone_number: Optional[str] = None
    access_code: Optional[str] = None


class SessionRequirements(BaseModel):
    """Client-provided context for the interpreter.

    emergency shortens the cancellation and reschedule notice window.
    """

    model_config = {"frozen": True}

    subject_matter: str = ""
    special_instructions: Optional[str] = None
    technical_terminology: List[str] = Field(default_factory=list)
    cultural_considerations: Optional[str] = None
    emergency: bool = False


class RatingSubmission(BaseModel):
    """Rating payload as submitted by a participant.

    Ranges are checked by RatingService (1-5 for every score).
    """

    model_config = {"frozen": True}

    overall: int
    punctuality: Optional[int] = None
    professionalism: Optional[int] = None
    accuracy: Optional[int] = None
    communication: Optional[int] = None
    comment: Optional[str] = None


class SessionRating(BaseModel):
    """Stored rating with server-assigned timestamp."""

    model_config = {"frozen": True}

    overall: int = Field(ge=1, le=5)
    punctuality: Optional[int] = Field(default=None, ge=1, le=5)
    professionalism: Optional[int] = Field(default=None, ge=1, le=5)
    accuracy: Optional[int] = Field(default=None, ge=1, le=5)
    communication: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None
    rated_at: UTCDateTime


class Session(BaseModel):
    """Interpretation session record.

    Attributes:
        - scheduled_end: always scheduled_start + estimated_duration minutes
        - hourly_rate: snapshotted at creation, never re-read from the interpreter
        - pricing_version: PricingConfig version used for hourly_rate
        - version: optimistic concurrency counter, bumped on every write
    """

    model_config = {"frozen": True, "from_attributes": True}

    id: str
    client_id: str
    interpreter_id: Optional[str] = None
    status: SessionStatus = SessionStatus.REQUESTED
    session_type: SessionType
    specialization: Specialization = Specialization.GENERAL
    urgency: UrgencyLevel = UrgencyLevel.STANDARD
    source_language: str
    target_language: str

    # Scheduling
    scheduled_start: UTCDateTime
    scheduled_end: UTCDateTime
    estimated_duration: int = Field(gt=0, description="Minutes")
    actual_start: Optional[UTCDateTime] = None
    actual_end: Optional[UTCDateTime] = None
    actual_duration: Optional[int] = Field(default=None, ge=0)
    confirmed_at: Optional[UTCDateTime] = None

    location: SessionLocation = Field(default_factory=SessionLocation)
    requirements: SessionRequirements = Field(default_factory=SessionRequirements)
    recording_permitted: bool = False

    # Commercial
    hourly_rate: Decimal = Field(ge=0)
    additional_fees: Decimal = Field(default=Decimal("0.00"), ge=0)
    total_cost: Decimal = Field(ge=0)
    pricing_version: str = ""

    # Ratings
    client_rating: Optional[SessionRating] = None
    interpreter_rating: Optional[SessionRating] = None

    # Reschedule lineage
    is_rescheduled: bool = False
    rescheduled_count: int = Field(default=0, ge=0)
    original_session_id: Optional[str] = None
    rescheduled_session_id: Optional[str] = None

    # Cancellation
    cancellation_reason: Optional[str] = None
    cancellation_category: Optional[CancellationCategory] = None
    cancelled_at: Optional[UTCDateTime] = None
    cancelled_by: Optional[str] = None

    session_notes: Optional[str] = None

    created_at: UTCDateTime = Field(default_factory=utc_now)
    updated_at: UTCDateTime = Field(default_factory=utc_now)
    version: int = 1

    @model_validator(mode="after")
    def end_after_start(self) -> "Session":
        if self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduled_end must be after scheduled_start")
        return self


class SessionStatistics(BaseModel):
    """Session counts for one actor's view of the platform."""

    total_sessions: int
    completed_sessions: int
    cancelled_sessions: int
    upcoming_sessions: int
    completion_rate: float
    cancellation_rate: float


class SessionFilter(BaseModel):
    """Session listing criteria.

    date_from/date_to bound scheduled_start inclusively. language matches
    either side of the pair. needs_rating keeps completed sessions the
    client has not rated yet.
    """

    model_config = {"frozen": True}

    client_id: Optional[str] = None
    interpreter_id: Optional[str] = None
    statuses: List[SessionStatus] = Field(default_factory=list)
    session_type: Optional[SessionType] = None
    specialization: Optional[Specialization] = None
    date_from: Optional[UTCDateTime] = None
    date_to: Optional[UTCDateTime] = None
    language: Optional[str] = None
    needs_rating: bool = False
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class SessionPage(BaseModel):
    sessions: List[Session]
    total: int
    page: int
    limit: int
