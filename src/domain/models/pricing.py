"""Pricing domain models.

Request and result records for the Pricing Calculator. Results are plain
values derived only from the request and the injected PricingConfig, so two
identical requests against the same config version yield equal results.
"""

from decimal import Decimal
from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class UrgencyLevel(str, Enum):
    """Turnaround-speed category affecting price."""

    STANDARD = "standard"
    RUSH = "rush"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class ContentType(str, Enum):
    """Kind of content being translated (per-word pricing)."""

    GENERAL = "general"
    DOCUMENT = "document"
    WEBSITE = "website"
    MARKETING = "marketing"
    TECHNICAL = "technical"
    LEGAL = "legal"
    MEDICAL = "medical"
    ACADEMIC = "academic"


class LanguageTier(str, Enum):
    """Relative rarity of a language pair."""

    COMMON = "common"
    SPECIALIZED = "specialized"
    RARE = "rare"


class PricingRequest(BaseModel):
    """Per-word quote request.

    Numeric bounds are checked by PricingService so that callers get a
    domain ValidationError instead of a schema error.
    """

    model_config = {"frozen": True}

    word_count: int
    source_language: str
    target_language: str
    urgency_level: UrgencyLevel = UrgencyLevel.STANDARD
    content_type: ContentType = ContentType.GENERAL
    requires_certification: bool = False


class PricingBreakdown(BaseModel):
    """Itemized quote components."""

    model_config = {"frozen": True}

    base_translation: Decimal
    urgency_fee: Decimal
    specialty_fee: Decimal
    certification_fee: Decimal
    total: Decimal


class PricingQuote(BaseModel):
    """Full result of a per-word quote."""

    model_config = {"frozen": True}

    tier: LanguageTier
    base_rate_per_word: Decimal
    rate_per_word: Decimal
    word_count: int
    subtotal: Decimal
    urgency_multiplier: Decimal
    type_multiplier: Decimal
    certification_fee: Decimal
    minimum_fee_applied: bool
    total_cost: Decimal
    currency: str
    pricing_version: str
    breakdown: PricingBreakdown


class LanguagePairInfo(BaseModel):
    model_config = {"frozen": True}

    tier: LanguageTier
    base_rate: Decimal
    complexity: str


class UrgencyInfo(BaseModel):
    model_config = {"frozen": True}

    multiplier: Decimal
    delivery_days: int
    description: str


class ContentTypeInfo(BaseModel):
    model_config = {"frozen": True}

    multiplier: Decimal
    description: str
    requirements: List[str] = Field(default_factory=list)
