"""Top-level operations.

Every function here returns a success/failure result value instead of
raising. A missing credential surfaces as a ``Failure`` carrying the
"... not configured" message; collaborator errors are reported with
their message text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlparse

import structlog
from pydantic import ValidationError

from adsmith.ad_intelligence import AdIntelligenceAnalyzer
from adsmith.errors import AdsmithError, ServiceNotConfiguredError
from adsmith.models.base import Failure
from adsmith.models.product import PRODUCT_SCRAPE_SCHEMA, ProductInfo
from adsmith.models.research import MarketResearch, ResearchResult, ResearchSuccess
from adsmith.models.scrape import ScrapeResult, ScrapeSuccess
from adsmith.outreach import send_outreach_email as _send
from adsmith.services import Services

if TYPE_CHECKING:
    from collections.abc import Sequence

    from adsmith.models.creative import ClipMediaResult, CreativeOutput, VideoClip
    from adsmith.models.outreach import (
        EmailDraft,
        Influencer,
        InfluencerSearchResult,
        SendResult,
    )
    from adsmith.models.research import AdIntelligenceOutcome

logger = structlog.get_logger()


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


async def scrape_product_url(
    url: str, enable_research: bool = False, *, services: Services | None = None
) -> ScrapeResult:
    """Scrape a product page into ``ProductInfo``, optionally with market research.

    Research runs only when the page yielded a title. The model-driven
    research is tried when search-based research comes back empty.
    """
    if not is_valid_url(url):
        return Failure(error="Invalid URL format")
    services = services or Services()

    try:
        firecrawl = services.firecrawl()
        raw = await firecrawl.scrape_json(url, PRODUCT_SCRAPE_SCHEMA)
        if not raw:
            return Failure(error="Failed to scrape the page - no data returned")
        product = ProductInfo.model_validate(raw)

        research: MarketResearch | None = None
        if enable_research and product.title:
            orchestrator = services.research(with_fallback=True)
            research = await orchestrator.research_with_fallback(
                product.title, product.brand, product.category
            )
    except ServiceNotConfiguredError as exc:
        return Failure(error=str(exc))
    except (AdsmithError, ValidationError) as exc:
        logger.error("Product scrape failed", url=url, error=str(exc))
        return Failure(error=str(exc) or "Failed to scrape product information")

    logger.info("Product scraped", url=url, title=product.title, research=research is not None)
    return ScrapeSuccess(data=product, url=url, research=research)


async def refresh_product_research(
    product_name: str,
    brand: str | None = None,
    category: str | None = None,
    *,
    services: Services | None = None,
) -> ResearchResult:
    """Search-based research only, no model fallback."""
    services = services or Services()
    try:
        orchestrator = services.research(with_fallback=False)
    except ServiceNotConfiguredError as exc:
        return Failure(error=str(exc))
    research = await orchestrator.run_research(product_name, brand, category)
    return ResearchSuccess(research=research)


async def generate_storyboards(
    product: ProductInfo,
    research: MarketResearch | None = None,
    *,
    services: Services | None = None,
) -> CreativeOutput:
    """Always four clips; the template script is used without a completion key."""
    services = services or Services()
    generator = services.storyboard()
    return await generator.generate_storyboards(product, research or MarketResearch())


async def generate_clip_media(
    clips: Sequence[VideoClip], *, services: Services | None = None
) -> ClipMediaResult:
    services = services or Services()
    try:
        pipeline = services.scene_pipeline()
    except ServiceNotConfiguredError as exc:
        return Failure(error=str(exc))
    return await pipeline.generate_clip_media(clips)


async def find_influencers(
    product_name: str,
    category: str,
    brand: str | None = None,
    *,
    services: Services | None = None,
) -> InfluencerSearchResult:
    services = services or Services()
    try:
        scout = services.influencer_scout()
    except ServiceNotConfiguredError as exc:
        return Failure(error=str(exc))
    return await scout.find_influencers(product_name, category, brand)


async def generate_outreach_emails(
    influencers: list[Influencer],
    product: ProductInfo,
    video_url: str | None = None,
    *,
    services: Services | None = None,
) -> list[EmailDraft]:
    """Drafts for the influencers that could be written. Raises when unconfigured."""
    services = services or Services()
    writer = services.outreach_writer()
    return await writer.generate_outreach_emails(influencers, product, video_url)


async def send_outreach_email(
    draft: EmailDraft,
    from_address: str | None = None,
    video_url: str | None = None,
    *,
    services: Services | None = None,
) -> SendResult:
    services = services or Services()
    sender = from_address or services.settings.email_from
    mailer = services.resend() if services.settings.resend_api_key else None
    return await _send(draft, sender, mailer, video_url)


async def analyze_ad_intelligence(
    product_name: str,
    brand: str = "",
    category: str = "",
    *,
    services: Services | None = None,
) -> AdIntelligenceOutcome:
    services = services or Services()
    try:
        analyzer = AdIntelligenceAnalyzer(services.firecrawl(), services.llm())
    except ServiceNotConfiguredError as exc:
        return Failure(error=str(exc))
    return await analyzer.analyze(product_name, brand, category)
