"""
Custom exception hierarchy for the booking engine.

All application exceptions inherit from BookingSystemError. Every business
rule failure is a typed, recoverable outcome; only StorageUnavailableError
signals an infrastructure fault.
"""

from typing import Optional


class BookingSystemError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(BookingSystemError):
    """Invalid or missing configuration."""

    pass


# =============================================================================
# Input Errors
# =============================================================================


class ValidationError(BookingSystemError):
    """Input validation failed.

    Always detectable before touching storage; never retried automatically.
    """

    pass


# =============================================================================
# Lookup Errors
# =============================================================================


class NotFoundError(BookingSystemError):
    """Referenced record does not exist."""

    pass


class InterpreterNotFoundError(NotFoundError):
    """Interpreter does not exist."""

    pass


class SessionNotFoundError(NotFoundError):
    """Session does not exist."""

    pass


class UserNotFoundError(NotFoundError):
    """User does not exist."""

    pass


class ClientNotFoundError(NotFoundError):
    """Client does not exist or the user is not a client."""

    pass


class NoInterpreterAvailableError(NotFoundError):
    """No interpreter matched the requested criteria and slot."""

    pass


# =============================================================================
# Concurrency Errors
# =============================================================================


class ConflictError(BookingSystemError):
    """Operation collided with existing or concurrent state.

    Safe to retry the whole operation.
    """

    pass


class SchedulingConflictError(ConflictError):
    """Interpreter already has a confirmed or running session in the slot."""

    def __init__(self, message: str, conflicting_session_id: Optional[str] = None):
        self.conflicting_session_id = conflicting_session_id
        super().__init__(message)


class ConcurrentModificationError(ConflictError):
    """Record changed underneath the operation (version mismatch or lock timeout)."""

    pass


# =============================================================================
# Authorization Errors
# =============================================================================


class ForbiddenError(BookingSystemError):
    """Actor lacks role or ownership for the requested operation."""

    pass


# =============================================================================
# Lifecycle Errors
# =============================================================================


class IllegalTransitionError(BookingSystemError):
    """Requested status is not reachable from the current status."""

    pass


class NotEligibleError(BookingSystemError):
    """A business-rule gate failed (notice window, reschedule cap, ...)."""

    pass


class AlreadyRatedError(NotEligibleError):
    """The rating slot for this role is already filled."""

    pass


class InterpreterUnavailableError(NotEligibleError):
    """Interpreter is not qualified or not scheduled to work at the requested time."""

    pass


# =============================================================================
# Infrastructure Errors
# =============================================================================


class StorageUnavailableError(BookingSystemError):
    """The backing store cannot be reached at all."""

    pass
