"""Domain models package."""

from .actor import Actor, User, UserRole
from .booking import BookingRequest, MatchCriteria
from .interpreter import (
    AvailabilityStatus,
    AvailabilityWindow,
    Interpreter,
    InterpreterFilter,
    InterpreterPage,
    InterpreterProfile,
    InterpreterStatus,
    InterpreterUpdate,
    LanguageProficiency,
    RateStructure,
    SessionType,
    Specialization,
)
from .pricing import ContentType, PricingQuote, PricingRequest, UrgencyLevel
from .session import (
    CancellationCategory,
    RaterRole,
    RatingSubmission,
    Session,
    SessionFilter,
    SessionPage,
    SessionRating,
    SessionStatus,
)

__all__ = [
    "Actor",
    "User",
    "UserRole",
    "BookingRequest",
    "MatchCriteria",
    "AvailabilityStatus",
    "AvailabilityWindow",
    "Interpreter",
    "InterpreterFilter",
    "InterpreterPage",
    "InterpreterProfile",
    "InterpreterStatus",
    "InterpreterUpdate",
    "LanguageProficiency",
    "RateStructure",
    "SessionType",
    "Specialization",
    "ContentType",
    "PricingQuote",
    "PricingRequest",
    "UrgencyLevel",
    "CancellationCategory",
    "RaterRole",
    "RatingSubmission",
    "Session",
    "SessionFilter",
    "SessionPage",
    "SessionRating",
    "SessionStatus",
]
