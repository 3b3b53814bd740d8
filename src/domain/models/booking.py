"""Booking request models.

Inputs to the matching engine and to session lifecycle operations. Numeric
bounds (durations, fees, rates) are validated by the services so that bad
input surfaces as a domain ValidationError.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.models.common import UTCDateTime
from src.domain.models.interpreter import SessionType, Specialization
from src.domain.models.pricing import UrgencyLevel
from src.domain.models.session import SessionLocation, SessionRequirements


class MatchCriteria(BaseModel):
    """What a client needs for one slot."""

    model_config = {"frozen": True}

    source_language: str
    target_language: str
    session_type: SessionType
    specialization: Specialization = Specialization.GENERAL
    scheduled_start: UTCDateTime
    duration_minutes: int = 60
    limit: Optional[int] = Field(default=None, ge=1)


class BookingRequest(BaseModel):
    """Request to create a session.

    interpreter_id pins a specific interpreter; when absent the best ranked
    non-conflicting candidate is assigned. hourly_rate overrides the
    interpreter's computed rate but is still subject to the rate floor.
    """

    model_config = {"frozen": True}

    client_id: str
    interpreter_id: Optional[str] = None
    session_type: SessionType
    specialization: Specialization = Specialization.GENERAL
    urgency: UrgencyLevel = UrgencyLevel.STANDARD
    source_language: str
    target_language: str
    scheduled_start: UTCDateTime
    estimated_duration: int = 60
    location: SessionLocation = Field(default_factory=SessionLocation)
    requirements: SessionRequirements = Field(default_factory=SessionRequirements)
    hourly_rate: Optional[Decimal] = None
    additional_fees: Decimal = Decimal("0.00")
    recording_permitted: bool = False

    def match_criteria(self) -> MatchCriteria:
        return MatchCriteria(
            source_language=self.source_language,
            target_language=self.target_language,
            session_type=self.session_type,
            specialization=self.specialization,
            scheduled_start=self.scheduled_start,
            duration_minutes=self.estimated_duration,
        )
