"""
Pricing API routes.

Per-word quotes and pricing reference tables.
"""

from decimal import Decimal

from fastapi import APIRouter, Query

from src.api.dependencies import PricingServiceDep
from src.api.schemas import BulkQuoteRequest, BulkQuoteResponse
from src.domain.models.pricing import (
    ContentType,
    ContentTypeInfo,
    LanguagePairInfo,
    PricingQuote,
    PricingRequest,
    UrgencyInfo,
    UrgencyLevel,
)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/quote", response_model=PricingQuote)
async def quote(request: PricingRequest, pricing: PricingServiceDep):
    return pricing.quote(request)


@router.post("/bulk", response_model=BulkQuoteResponse)
async def bulk_quote(body: BulkQuoteRequest, pricing: PricingServiceDep):
    quotes = pricing.bulk_quote(body.requests)
    return BulkQuoteResponse(
        quotes=quotes, total_cost=sum((q.total_cost for q in quotes), Decimal("0.00"))
    )


@router.get("/language-pair", response_model=LanguagePairInfo)
async def language_pair(
    pricing: PricingServiceDep,
    source: str = Query(..., min_length=2, max_length=10),
    target: str = Query(..., min_length=2, max_length=10),
):
    return pricing.language_pair_info(source, target)


@router.get("/urgency/{urgency}", response_model=UrgencyInfo)
async def urgency_info(urgency: UrgencyLevel, pricing: PricingServiceDep):
    return pricing.urgency_info(urgency)


@router.get("/content-type/{content_type}", response_model=ContentTypeInfo)
async def content_type_info(content_type: ContentType, pricing: PricingServiceDep):
    return pricing.content_type_info(content_type)
