"""
API request/response schemas.

Pydantic models for API validation and serialization. Domain records
(Session, Interpreter, PricingQuote) are returned as-is; the models here
only cover request bodies and list envelopes.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.domain.models.interpreter import (
    AvailabilityStatus,
    Interpreter,
    InterpreterStatus,
)
from src.domain.models.pricing import PricingQuote, PricingRequest
from src.domain.models.session import (
    CancellationCategory,
    RaterRole,
    RatingSubmission,
    Session,
    SessionStatus,
)


# ============ SESSION SCHEMAS ============


class SessionListResponse(BaseModel):
    """List of sessions response."""

    sessions: List[Session]
    total: int


class TransitionRequest(BaseModel):
    """Request to move a session to another status."""

    status: SessionStatus
    reason: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[CancellationCategory] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[CancellationCategory] = None


class RescheduleRequest(BaseModel):
    """Request to move a session to a new slot."""

    new_start: datetime
    new_duration: Optional[int] = Field(
        default=None, description="Minutes; omit to keep the current duration"
    )
    reason: Optional[str] = Field(default=None, max_length=1000)


class RateRequest(RatingSubmission):
    """Rating submission plus which side of the session is rating."""

    rater_role: RaterRole

    def submission(self) -> RatingSubmission:
        return RatingSubmission(**self.model_dump(exclude={"rater_role"}))


# ============ INTERPRETER SCHEMAS ============


class CandidateListResponse(BaseModel):
    """Ranked interpreters for a slot."""

    interpreters: List[Interpreter]
    total: int


class AvailabilityStatusUpdate(BaseModel):
    status: AvailabilityStatus


class InterpreterStatusUpdate(BaseModel):
    status: InterpreterStatus


# ============ PRICING SCHEMAS ============


class BulkQuoteRequest(BaseModel):
    requests: List[PricingRequest] = Field(..., min_length=1, max_length=100)


class BulkQuoteResponse(BaseModel):
    quotes: List[PricingQuote]
    total_cost: Decimal
