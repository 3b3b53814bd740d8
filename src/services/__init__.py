# noqa
from src.services.booking_service import BookingService
from src.services.interpreter_service import InterpreterService
from src.services.matching_service import MatchingService
from src.services.pricing_service import PricingService
from src.services.rating_service import RatingService

__all__ = [
    "BookingService",
    "InterpreterService",
    "MatchingService",
    "PricingService",
    "RatingService",
]
