"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header

from src.core.config import booking_config, settings
from src.core.exceptions import ForbiddenError, ValidationError
from src.domain.models.actor import Actor, UserRole
from src.services.booking_service import BookingService
from src.services.interpreter_service import InterpreterService
from src.services.matching_service import MatchingService
from src.services.pricing_service import PricingService
from src.services.rating_service import RatingService
from src.persistence.repositories.interpreter_repo import InterpreterRepository


@lru_cache(maxsize=1)
def get_pricing_service() -> PricingService:
    """Pricing service over the loaded booking config.

    Stateless, so one instance is shared for the process.
    """
    return PricingService(booking_config.pricing)


def get_booking_service(
    pricing: Annotated[PricingService, Depends(get_pricing_service)],
) -> BookingService:
    """FastAPI dependency injection for BookingService.

    Each request gets a new service bound to the database from settings.
    """
    return BookingService(
        str(settings.database_path), pricing=pricing, policy=booking_config.policy
    )


def get_rating_service() -> RatingService:
    return RatingService(str(settings.database_path))


def get_interpreter_service(
    pricing: Annotated[PricingService, Depends(get_pricing_service)],
) -> InterpreterService:
    return InterpreterService(
        str(settings.database_path), pricing=pricing, policy=booking_config.policy
    )


def get_matching_service() -> MatchingService:
    return MatchingService(InterpreterRepository(str(settings.database_path)))


def get_actor(
    x_user_id: Annotated[Optional[str], Header()] = None,
    x_user_role: Annotated[Optional[str], Header()] = None,
) -> Actor:
    """Authenticated caller as forwarded by the auth gateway.

    Raises:
        ForbiddenError: If either header is missing
        ValidationError: If the role is not a known role
    """
    if not x_user_id or not x_user_role:
        raise ForbiddenError("Missing X-User-Id / X-User-Role headers")
    try:
        role = UserRole(x_user_role.lower())
    except ValueError as e:
        raise ValidationError(f"Unknown role: {x_user_role}") from e
    return Actor(user_id=x_user_id, role=role)


# Type aliases for dependency injection
PricingServiceDep = Annotated[PricingService, Depends(get_pricing_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
RatingServiceDep = Annotated[RatingService, Depends(get_rating_service)]
InterpreterServiceDep = Annotated[InterpreterService, Depends(get_interpreter_service)]
MatchingServiceDep = Annotated[MatchingService, Depends(get_matching_service)]
ActorDep = Annotated[Actor, Depends(get_actor)]
