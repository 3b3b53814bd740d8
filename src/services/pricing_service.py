"""Pricing calculator for per-word quotes and hourly session rates.

All amounts are Decimal and rounded half-up to cents. The service holds no
state besides the injected PricingConfig, so quoting the same request twice
against the same config version returns equal results.

Per-word quote:
1. Tier the language pair (common if both common, rare if either rare,
   otherwise specialized)
2. rate_per_word = base_rate[tier] x urgency multiplier x content-type multiplier
3. subtotal = words x rate_per_word
4. total = max(subtotal + certification fee, minimum project fee)

Session rate:
    type override rate (or base hourly rate)
      x interpreter's own specialization multiplier (when configured)
      x urgency multiplier
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

import structlog

from src.core.config import PricingConfig, booking_config
from src.core.exceptions import ValidationError
from src.domain.models.interpreter import RateStructure, SessionType, Specialization
from src.domain.models.pricing import (
    ContentType,
    ContentTypeInfo,
    LanguagePairInfo,
    LanguageTier,
    PricingBreakdown,
    PricingQuote,
    PricingRequest,
    UrgencyInfo,
    UrgencyLevel,
)

log = structlog.get_logger(__name__)

CENTS = Decimal("0.01")

_COMPLEXITY = {
    LanguageTier.COMMON: "Standard",
    LanguageTier.SPECIALIZED: "Moderate",
    LanguageTier.RARE: "Complex",
}

_URGENCY_DELIVERY = {
    UrgencyLevel.STANDARD: (7, "5-7 business days"),
    UrgencyLevel.RUSH: (3, "2-3 business days"),
    UrgencyLevel.URGENT: (2, "24-48 hours"),
    UrgencyLevel.EMERGENCY: (1, "Same day delivery"),
}

_CONTENT_TYPE_DETAILS: Dict[ContentType, tuple] = {
    ContentType.GENERAL: (
        "General content translation",
        ["Native fluency", "Cultural awareness"],
    ),
    ContentType.DOCUMENT: (
        "Official document translation",
        ["Document formatting", "Accuracy verification"],
    ),
    ContentType.WEBSITE: (
        "Website and digital content",
        ["SEO awareness", "Cultural localization"],
    ),
    ContentType.MARKETING: (
        "Marketing and advertising content",
        ["Creative adaptation", "Brand consistency"],
    ),
    ContentType.TECHNICAL: (
        "Technical manuals and specifications",
        ["Technical expertise", "Terminology consistency"],
    ),
    ContentType.LEGAL: (
        "Legal documents and contracts",
        ["Legal expertise", "Certified translator", "Accuracy guarantee"],
    ),
    ContentType.MEDICAL: (
        "Medical and pharmaceutical content",
        ["Medical expertise", "Certified translator", "Confidentiality"],
    ),
    ContentType.ACADEMIC: (
        "Academic papers and research",
        ["Subject matter expertise", "Academic formatting"],
    ),
}


def to_cents(amount: Decimal) -> Decimal:
    """Round a money amount half-up to two decimals."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


class PricingService:
    """
    Deterministic pricing over an injected PricingConfig.

    Raises ValidationError for unknown language codes, non-positive word
    counts or durations, negative fees and hourly rates below the floor.
    """

    def __init__(self, config: Optional[PricingConfig] = None):
        self.config = config or booking_config.pricing
        self._known_codes = self.config.language_tiers.all_codes()

    @property
    def version(self) -> str:
        return self.config.version

    # ------------------------------------------------------------------
    # Languages
    # ------------------------------------------------------------------

    def validate_languages(self, source_language: str, target_language: str) -> None:
        unknown = sorted(
            {source_language, target_language} - self._known_codes
        )
        if unknown:
            raise ValidationError(f"Unsupported language code(s): {', '.join(unknown)}")
        if source_language == target_language:
            raise ValidationError("Source and target language must differ")

    def language_tier(self, source_language: str, target_language: str) -> LanguageTier:
        tiers = self.config.language_tiers
        pair = (source_language, target_language)
        if all(code in tiers.common for code in pair):
            return LanguageTier.COMMON
        if any(code in tiers.rare for code in pair):
            return LanguageTier.RARE
        return LanguageTier.SPECIALIZED

    # ------------------------------------------------------------------
    # Per-word quotes
    # ------------------------------------------------------------------

    def quote(self, request: PricingRequest) -> PricingQuote:
        """
        Price a per-word translation request.

        Args:
            request: Word count, language pair, urgency, content type and
                certification flag

        Returns:
            PricingQuote with itemized breakdown

        Raises:
            ValidationError: If word_count <= 0 or a language code is unknown
        """
        if request.word_count <= 0:
            raise ValidationError("word_count must be positive")
        self.validate_languages(request.source_language, request.target_language)

        tier = self.language_tier(request.source_language, request.target_language)
        base_rate = self.config.base_rates[tier.value]
        urgency_multiplier = self._urgency_multiplier(request.urgency_level)
        type_multiplier = self._content_type_multiplier(request.content_type)

        rate_per_word = base_rate * urgency_multiplier * type_multiplier
        words = Decimal(request.word_count)

        base_translation = to_cents(words * base_rate)
        urgency_fee = to_cents(words * base_rate * (urgency_multiplier - 1))
        specialty_fee = to_cents(words * base_rate * (type_multiplier - 1))
        certification_fee = (
            to_cents(self.config.certification_fee)
            if request.requires_certification
            else to_cents(Decimal("0"))
        )

        subtotal = to_cents(words * rate_per_word)
        before_minimum = subtotal + certification_fee
        minimum_fee = to_cents(self.config.minimum_project_fee)
        minimum_fee_applied = before_minimum < minimum_fee
        total_cost = minimum_fee if minimum_fee_applied else before_minimum

        return PricingQuote(
            tier=tier,
            base_rate_per_word=base_rate,
            rate_per_word=rate_per_word,
            word_count=request.word_count,
            subtotal=subtotal,
            urgency_multiplier=urgency_multiplier,
            type_multiplier=type_multiplier,
            certification_fee=certification_fee,
            minimum_fee_applied=minimum_fee_applied,
            total_cost=total_cost,
            currency=self.config.currency,
            pricing_version=self.config.version,
            breakdown=PricingBreakdown(
                base_translation=base_translation,
                urgency_fee=urgency_fee,
                specialty_fee=specialty_fee,
                certification_fee=certification_fee,
                total=total_cost,
            ),
        )

    def bulk_quote(self, requests: List[PricingRequest]) -> List[PricingQuote]:
        """Quote several requests; the first invalid one aborts the batch."""
        return [self.quote(request) for request in requests]

    # ------------------------------------------------------------------
    # Session (hourly) pricing
    # ------------------------------------------------------------------

    def effective_hourly_rate(
        self,
        rate_structure: RateStructure,
        session_type: SessionType,
        specialization: Specialization,
        urgency: UrgencyLevel = UrgencyLevel.STANDARD,
    ) -> Decimal:
        """
        Hourly rate an interpreter charges for one kind of session.

        A specialization the interpreter has not priced leaves the rate
        unchanged.
        """
        type_rate = rate_structure.session_types.get(session_type)
        rate = type_rate.rate if type_rate is not None else rate_structure.hourly_rate

        specialization_rate = rate_structure.specializations.get(specialization)
        if specialization_rate is not None:
            rate = rate * specialization_rate.multiplier

        rate = to_cents(rate * self._urgency_multiplier(urgency))
        self.check_hourly_rate(rate)
        return rate

    def session_cost(
        self,
        duration_minutes: int,
        hourly_rate: Decimal,
        additional_fees: Decimal = Decimal("0.00"),
    ) -> Decimal:
        """duration / 60 x hourly_rate + additional_fees, in cents."""
        if duration_minutes <= 0:
            raise ValidationError("Session duration must be positive")
        self.check_hourly_rate(hourly_rate)
        if additional_fees < 0:
            raise ValidationError("Additional fees cannot be negative")

        return self.prorated_cost(duration_minutes, hourly_rate, additional_fees)

    @staticmethod
    def prorated_cost(
        duration_minutes: int, hourly_rate: Decimal, additional_fees: Decimal
    ) -> Decimal:
        """Unchecked cost of a session already priced at hourly_rate.

        Used at completion where the rate is a stored snapshot and the actual
        duration may round to zero.
        """
        return to_cents(
            Decimal(max(duration_minutes, 0)) / Decimal(60) * Decimal(hourly_rate)
            + Decimal(additional_fees)
        )

    def check_hourly_rate(self, hourly_rate: Decimal) -> None:
        floor = self.config.minimum_hourly_rate
        if hourly_rate < floor:
            raise ValidationError(
                f"Hourly rate {hourly_rate} is below the minimum of {floor}"
            )

    # ------------------------------------------------------------------
    # Reference information
    # ------------------------------------------------------------------

    def language_pair_info(
        self, source_language: str, target_language: str
    ) -> LanguagePairInfo:
        self.validate_languages(source_language, target_language)
        tier = self.language_tier(source_language, target_language)
        return LanguagePairInfo(
            tier=tier,
            base_rate=self.config.base_rates[tier.value],
            complexity=_COMPLEXITY[tier],
        )

    def urgency_info(self, urgency: UrgencyLevel) -> UrgencyInfo:
        delivery_days, description = _URGENCY_DELIVERY[urgency]
        return UrgencyInfo(
            multiplier=self._urgency_multiplier(urgency),
            delivery_days=delivery_days,
            description=description,
        )

    def content_type_info(self, content_type: ContentType) -> ContentTypeInfo:
        description, requirements = _CONTENT_TYPE_DETAILS[content_type]
        return ContentTypeInfo(
            multiplier=self._content_type_multiplier(content_type),
            description=description,
            requirements=list(requirements),
        )

    def _urgency_multiplier(self, urgency: UrgencyLevel) -> Decimal:
        return self.config.urgency_multipliers.get(urgency.value, Decimal("1.0"))

    def _content_type_multiplier(self, content_type: ContentType) -> Decimal:
        return self.config.content_type_multipliers.get(
            content_type.value, Decimal("1.0")
        )
