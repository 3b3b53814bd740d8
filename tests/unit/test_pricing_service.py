"""Tests for PricingService per-word quotes and hourly session pricing."""

from decimal import Decimal

import pytest

from src.core.config import PricingConfig
from src.core.exceptions import ValidationError
from src.domain.models.interpreter import (
    RateStructure,
    SessionType,
    SessionTypeRate,
    Specialization,
    SpecializationRate,
)
from src.domain.models.pricing import (
    ContentType,
    LanguageTier,
    PricingRequest,
    UrgencyLevel,
)
from src.services.pricing_service import PricingService, to_cents


@pytest.fixture
def service():
    return PricingService(PricingConfig())


def make_request(**overrides) -> PricingRequest:
    data = dict(word_count=1000, source_language="en", target_language="es")
    data.update(overrides)
    return PricingRequest(**data)


class TestLanguageTier:
    def test_both_common_is_common(self, service):
        assert service.language_tier("en", "es") == LanguageTier.COMMON

    def test_common_and_specialized_is_specialized(self, service):
        assert service.language_tier("en", "ko") == LanguageTier.SPECIALIZED

    def test_any_rare_is_rare(self, service):
        assert service.language_tier("en", "he") == LanguageTier.RARE
        assert service.language_tier("ko", "he") == LanguageTier.RARE

    def test_unknown_language_rejected(self, service):
        with pytest.raises(ValidationError, match="xx"):
            service.validate_languages("en", "xx")

    def test_same_language_rejected(self, service):
        with pytest.raises(ValidationError):
            service.validate_languages("en", "en")


class TestQuote:
    def test_standard_common_quote(self, service):
        quote = service.quote(make_request())

        assert quote.tier == LanguageTier.COMMON
        assert quote.subtotal == Decimal("120.00")
        assert quote.total_cost == Decimal("120.00")
        assert quote.minimum_fee_applied is False
        assert quote.currency == "USD"
        assert quote.pricing_version == "2024-01"

    def test_rare_pair_uses_rare_rate(self, service):
        quote = service.quote(make_request(target_language="he"))

        assert quote.base_rate_per_word == Decimal("0.25")
        assert quote.total_cost == Decimal("250.00")

    def test_multipliers_compose(self, service):
        quote = service.quote(
            make_request(
                urgency_level=UrgencyLevel.RUSH, content_type=ContentType.LEGAL
            )
        )

        # 0.12 x 1.5 x 1.6
        assert quote.rate_per_word == Decimal("0.288")
        assert quote.total_cost == Decimal("288.00")
        assert quote.breakdown.base_translation == Decimal("120.00")
        assert quote.breakdown.urgency_fee == Decimal("60.00")
        assert quote.breakdown.specialty_fee == Decimal("72.00")

    def test_certification_fee_added(self, service):
        quote = service.quote(make_request(requires_certification=True))

        assert quote.certification_fee == Decimal("50.00")
        assert quote.total_cost == Decimal("170.00")
        assert quote.breakdown.certification_fee == Decimal("50.00")

    def test_minimum_project_fee(self, service):
        quote = service.quote(make_request(word_count=10))

        assert quote.subtotal == Decimal("1.20")
        assert quote.total_cost == Decimal("25.00")
        assert quote.minimum_fee_applied is True

    @pytest.mark.parametrize("word_count", [0, -5])
    def test_non_positive_word_count_rejected(self, service, word_count):
        with pytest.raises(ValidationError):
            service.quote(make_request(word_count=word_count))

    def test_same_request_same_quote(self, service):
        request = make_request(urgency_level=UrgencyLevel.URGENT)

        assert service.quote(request) == service.quote(request)

    def test_bulk_quote_aborts_on_invalid_entry(self, service):
        with pytest.raises(ValidationError):
            service.bulk_quote([make_request(), make_request(word_count=0)])

    def test_bulk_quote_returns_one_quote_per_request(self, service):
        quotes = service.bulk_quote([make_request(), make_request(word_count=500)])

        assert [q.total_cost for q in quotes] == [Decimal("120.00"), Decimal("60.00")]

    def test_config_version_flows_into_quote(self):
        service = PricingService(PricingConfig(version="2031-02"))

        assert service.quote(make_request()).pricing_version == "2031-02"


class TestSessionPricing:
    def rates(self, **overrides) -> RateStructure:
        data = dict(
            hourly_rate=Decimal("80.00"),
            specializations={
                Specialization.LEGAL: SpecializationRate(multiplier=Decimal("1.6"))
            },
        )
        data.update(overrides)
        return RateStructure(**data)

    def test_base_rate_for_general_standard(self, service):
        rate = service.effective_hourly_rate(
            self.rates(), SessionType.VIDEO, Specialization.GENERAL
        )
        assert rate == Decimal("80.00")

    def test_specialization_and_urgency_multiply(self, service):
        rate = service.effective_hourly_rate(
            self.rates(), SessionType.VIDEO, Specialization.LEGAL, UrgencyLevel.URGENT
        )
        assert rate == Decimal("256.00")

    def test_unpriced_specialization_leaves_rate(self, service):
        rate = service.effective_hourly_rate(
            self.rates(), SessionType.VIDEO, Specialization.MEDICAL
        )
        assert rate == Decimal("80.00")

    def test_session_type_override(self, service):
        rates = self.rates(
            session_types={SessionType.IN_PERSON: SessionTypeRate(rate=Decimal("100"))}
        )
        rate = service.effective_hourly_rate(
            rates, SessionType.IN_PERSON, Specialization.GENERAL
        )
        assert rate == Decimal("100.00")

    def test_rate_below_floor_rejected(self, service):
        with pytest.raises(ValidationError, match="below the minimum"):
            service.effective_hourly_rate(
                self.rates(hourly_rate=Decimal("5")),
                SessionType.PHONE,
                Specialization.GENERAL,
            )

    @pytest.mark.parametrize(
        "minutes,fees,expected",
        [
            (60, "0", "80.00"),
            (90, "0", "120.00"),
            (45, "5.00", "65.00"),
            (1, "0", "1.33"),
        ],
    )
    def test_session_cost(self, service, minutes, fees, expected):
        cost = service.session_cost(minutes, Decimal("80.00"), Decimal(fees))
        assert cost == Decimal(expected)

    def test_session_cost_rejects_bad_input(self, service):
        with pytest.raises(ValidationError):
            service.session_cost(0, Decimal("80.00"))
        with pytest.raises(ValidationError):
            service.session_cost(60, Decimal("80.00"), Decimal("-1"))
        with pytest.raises(ValidationError):
            service.session_cost(60, Decimal("9.99"))

    def test_prorated_cost_allows_zero_minutes(self):
        assert PricingService.prorated_cost(0, Decimal("80.00"), Decimal("0")) == Decimal(
            "0.00"
        )


class TestReferenceInfo:
    def test_language_pair_info(self, service):
        info = service.language_pair_info("en", "he")

        assert info.tier == LanguageTier.RARE
        assert info.base_rate == Decimal("0.25")
        assert info.complexity == "Complex"

    def test_urgency_info(self, service):
        info = service.urgency_info(UrgencyLevel.EMERGENCY)

        assert info.multiplier == Decimal("3.0")
        assert info.delivery_days == 1

    def test_content_type_info(self, service):
        info = service.content_type_info(ContentType.LEGAL)

        assert info.multiplier == Decimal("1.6")
        assert "Certified translator" in info.requirements


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("1.005")) == Decimal("1.01")
    assert to_cents(Decimal("1.004")) == Decimal("1.00")
