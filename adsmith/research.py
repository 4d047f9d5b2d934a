"""Market research orchestration.

Fans out a fixed battery of searches across three intents (pain points,
competitor products, competitor ads), deduplicates and deep-scrapes the
best URLs per intent, then runs each scraped result through the
heuristic extractor. Every search and scrape is individually fault
tolerant: a failed unit of work is logged and contributes nothing (or,
for scrapes, contributes its search snippet only).
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from adsmith.extraction import (
    ExtractionPolicy,
    dedupe_ads_by_competitor,
    extract_competitor,
    extract_competitor_ad,
    extract_pain_point,
)
from adsmith.metrics import research_records_total, stage_duration_seconds
from adsmith.models.research import (
    CompetitorAd,
    CompetitorProduct,
    CompetitorsOutput,
    MarketResearch,
    PainPoint,
    PainPointsOutput,
    ResearchIntent,
    SearchHit,
)

if TYPE_CHECKING:
    from adsmith.clients.firecrawl import FirecrawlClient
    from adsmith.config import Settings
    from adsmith.llm import LLMClient

logger = structlog.get_logger()

# Query index ranges per intent: [0, 3) pain points, [3, 6) competitors, [6, 11) ads.
PAIN_POINT_QUERY_COUNT = 3
COMPETITOR_QUERY_COUNT = 3
AD_QUERY_COUNT = 5
QUERY_COUNT = PAIN_POINT_QUERY_COUNT + COMPETITOR_QUERY_COUNT + AD_QUERY_COUNT

CATEGORY_COMPETITORS: dict[str, tuple[str, ...]] = {
    # Footwear
    "shoes": ("Nike", "Adidas", "New Balance", "Puma", "Reebok", "Asics", "Brooks", "Saucony", "Hoka", "On Running"),
    "running shoes": ("Nike", "Adidas", "Brooks", "Asics", "Hoka", "Saucony", "New Balance", "On Running", "Mizuno"),
    "sneakers": ("Nike", "Adidas", "Jordan", "New Balance", "Puma", "Converse", "Vans", "Reebok"),
    "boots": ("Timberland", "Dr. Martens", "Red Wing", "Clarks", "UGG", "Wolverine", "Thursday Boot"),
    # Electronics
    "headphones": ("Sony", "Bose", "Apple", "Samsung", "Sennheiser", "JBL", "Beats", "Audio-Technica"),
    "earbuds": ("Apple", "Samsung", "Sony", "Jabra", "Bose", "Google", "Nothing", "Anker"),
    "smartphone": ("Apple", "Samsung", "Google", "OnePlus", "Xiaomi", "Oppo", "Motorola"),
    "laptop": ("Apple", "Dell", "HP", "Lenovo", "Asus", "Microsoft", "Acer", "Razer"),
    "tablet": ("Apple", "Samsung", "Microsoft", "Amazon", "Lenovo", "Huawei"),
    # Apparel
    "clothing": ("Nike", "Adidas", "Lululemon", "Under Armour", "Gap", "H&M", "Zara", "Uniqlo"),
    "activewear": ("Nike", "Adidas", "Lululemon", "Under Armour", "Gymshark", "Athleta", "Alo Yoga"),
    "jacket": ("The North Face", "Patagonia", "Columbia", "Arc'teryx", "Canada Goose", "Marmot"),
    # Beauty
    "skincare": ("CeraVe", "The Ordinary", "La Roche-Posay", "Drunk Elephant", "Tatcha", "Glow Recipe"),
    "makeup": ("Maybelline", "L'Oreal", "MAC", "Fenty Beauty", "Charlotte Tilbury", "NARS", "Urban Decay"),
    # Home
    "mattress": ("Casper", "Purple", "Tempur-Pedic", "Saatva", "Nectar", "Helix", "DreamCloud"),
    "vacuum": ("Dyson", "Shark", "Roomba", "Bissell", "Miele", "Tineco", "Samsung"),
    # Kitchen
    "blender": ("Vitamix", "Ninja", "KitchenAid", "Nutribullet", "Cuisinart", "Breville"),
    "coffee maker": ("Nespresso", "Keurig", "Breville", "De'Longhi", "Cuisinart", "Mr. Coffee"),
    # Fitness
    "fitness tracker": ("Fitbit", "Apple Watch", "Garmin", "Samsung", "Whoop", "Oura"),
    "treadmill": ("Peloton", "NordicTrack", "ProForm", "Bowflex", "Sole", "Echelon"),
}  # fmt: skip

_NON_WORD = re.compile(r"[^\w\s]")


def clean_product_name(product_name: str) -> str:
    return _NON_WORD.sub(" ", product_name).strip()


def competitor_brands(product_name: str, brand: str, category: str) -> list[str]:
    """Competitor brands for the first category entry matching the product.

    Entries are tried in table order; the researched brand is removed.
    """
    lower_category = category.lower()
    lower_product = product_name.lower()
    first_word = lower_product.split()[0] if lower_product.split() else ""
    lower_brand = brand.lower()

    for cat, brands in CATEGORY_COMPETITORS.items():
        if (
            (lower_category and (cat in lower_category or lower_category in cat))
            or cat in lower_product
            or (first_word and first_word in cat)
        ):
            return [b for b in brands if b.lower() != lower_brand]
    return []


def competitor_search_terms(product_name: str, brand: str, category: str) -> str:
    """Top five competitor brands as a quoted OR-query, or "" when unknown."""
    brands = competitor_brands(product_name, brand, category)[:5]
    return " OR ".join(f'"{b}"' for b in brands)


def intent_for_index(index: int) -> ResearchIntent:
    if index < PAIN_POINT_QUERY_COUNT:
        return ResearchIntent.PAIN_POINT
    if index < PAIN_POINT_QUERY_COUNT + COMPETITOR_QUERY_COUNT:
        return ResearchIntent.COMPETITOR
    return ResearchIntent.COMPETITOR_AD


def build_search_queries(
    product_name: str, brand: str | None = None, category: str | None = None
) -> list[str]:
    """The eleven research queries, ordered so that index determines intent."""
    name = clean_product_name(product_name)
    brand = brand or ""
    category = category or "product"
    terms = competitor_search_terms(name, brand, category)

    queries = [
        # Pain points: complaints, feature requests, negative feedback
        f'"{name}" OR "{brand}" review complaints problems -site:amazon.com',
        f'"{name}" "I wish" OR "should have" OR "missing feature" OR "doesn\'t work" reddit OR twitter',
        f'"{brand}" {category} issues frustrating user feedback site:reddit.com OR site:producthunt.com',
        # Competitor products: direct 1:1 alternatives
        f'"{name}" vs OR versus OR alternative OR "compared to" {category}',
        f'best {category} alternatives to "{brand}" OR "{name}" 2024 2025',
        f'"switch from {name}" OR "moved from {brand}" OR "{name} competitor"',
        # Competitor ads: other brands in the category, on social/video platforms
        f'{terms} {category} ad OR commercial OR review -"{brand}" site:youtube.com',
        f'{category} "{terms}" sponsored OR "#ad" OR "paid partnership" -"{brand}" '
        "site:instagram.com OR site:tiktok.com",
        f'"best {category}" OR "top {category}" 2024 2025 -"{brand}" brand review site:youtube.com',
        f'{category} brand ad OR promo OR campaign -"{brand}" site:tiktok.com OR site:instagram.com',
        f'{terms} {category} ad campaign OR advertisement OR marketing 2024 2025 -"{brand}"',
    ]
    return [" ".join(q.split()) for q in queries]


def dedupe_by_url(hits: list[SearchHit]) -> list[SearchHit]:
    """First occurrence of each URL wins."""
    seen: set[str] = set()
    unique: list[SearchHit] = []
    for hit in hits:
        if hit.url in seen:
            continue
        seen.add(hit.url)
        unique.append(hit)
    return unique


def select_for_scrape(hits: list[SearchHit], per_intent: int) -> list[SearchHit]:
    """At most *per_intent* hits of each intent, preserving order within an intent."""
    selected: list[SearchHit] = []
    for intent in ResearchIntent:
        selected.extend([h for h in hits if h.intent is intent][:per_intent])
    return selected


def summarize(pain_points: int, competitors: int, ads: int) -> str | None:
    if not (pain_points or competitors or ads):
        return None
    return (
        f"Found {pain_points} pain points, {competitors} competing products, "
        f"and {ads} competitor ads."
    )


class ResearchOrchestrator:
    """Runs search-based market research with an optional model-driven fallback."""

    def __init__(
        self,
        firecrawl: FirecrawlClient,
        settings: Settings,
        *,
        llm: LLMClient | None = None,
        policy: ExtractionPolicy | None = None,
    ) -> None:
        self.firecrawl = firecrawl
        self.settings = settings
        self.llm = llm
        self.policy = policy or ExtractionPolicy(
            brand_exclusion_threshold=settings.brand_exclusion_threshold
        )

    async def _search(self, index: int, query: str) -> list[SearchHit]:
        intent = intent_for_index(index)
        try:
            items = await self.firecrawl.search(query, limit=self.settings.search_limit)
        except Exception as exc:
            logger.warning("Research search failed", index=index, query=query[:80], error=str(exc))
            return []
        logger.debug("Research search complete", index=index, results=len(items))
        return [
            SearchHit(
                url=item["url"],
                title=item["title"],
                description=item["description"],
                intent=intent,
            )
            for item in items
        ]

    async def _scrape(self, hit: SearchHit) -> SearchHit:
        timeout_ms = self.settings.scrape_timeout_ms
        try:
            markdown = await asyncio.wait_for(
                self.firecrawl.scrape_markdown(hit.url, timeout_ms=timeout_ms),
                timeout=timeout_ms / 1000 + 5,
            )
        except Exception as exc:
            logger.warning(
                "Research scrape failed", url=hit.url, error=str(exc) or type(exc).__name__
            )
            return hit
        return hit.model_copy(update={"content": markdown[: self.settings.scrape_content_chars]})

    async def collect(
        self, product_name: str, brand: str = "", category: str = ""
    ) -> list[SearchHit]:
        """Search, dedupe, select and deep-scrape. Returns scraped hits in intent order."""
        queries = build_search_queries(product_name, brand, category)
        batches = await asyncio.gather(*(self._search(i, q) for i, q in enumerate(queries)))

        found = [hit for batch in batches for hit in batch]
        unique = dedupe_by_url(found)
        selected = select_for_scrape(unique, self.settings.scrape_per_intent)
        logger.info(
            "Research search complete",
            urls_found=len(found),
            unique_urls=len(unique),
            selected=len(selected),
        )
        return list(await asyncio.gather(*(self._scrape(hit) for hit in selected)))

    def extract(self, hits: list[SearchHit], brand: str = "") -> MarketResearch:
        """Turn scraped hits into a capped, deduplicated MarketResearch."""
        settings = self.settings
        by_intent = {
            intent: [h for h in hits if h.intent is intent] for intent in ResearchIntent
        }

        pain_points: list[PainPoint] = [
            extract_pain_point(h, self.policy)
            for h in by_intent[ResearchIntent.PAIN_POINT][: settings.max_pain_points]
        ]
        competitors: list[CompetitorProduct] = [
            extract_competitor(h, self.policy)
            for h in by_intent[ResearchIntent.COMPETITOR][: settings.max_competitors]
        ]

        ads: list[CompetitorAd] = []
        for hit in by_intent[ResearchIntent.COMPETITOR_AD]:
            if len(ads) >= settings.max_competitor_ads:
                break
            ad = extract_competitor_ad(hit, brand, self.policy)
            if ad is not None:
                ads.append(ad)
        competitor_ads = dedupe_ads_by_competitor(ads)

        research_records_total.labels(kind="pain_point").inc(len(pain_points))
        research_records_total.labels(kind="competitor").inc(len(competitors))
        research_records_total.labels(kind="competitor_ad").inc(len(competitor_ads))

        return MarketResearch(
            pain_points=pain_points,
            competitors=competitors,
            competitor_ads=competitor_ads,
            market_summary=summarize(len(pain_points), len(competitors), len(competitor_ads)),
            sources=[h.url for h in hits],
        )

    async def run_research(
        self, product_name: str, brand: str | None = None, category: str | None = None
    ) -> MarketResearch:
        """Search-based research. Never raises for partial data loss."""
        brand = brand or ""
        logger.info(
            "Starting market research",
            product=product_name,
            brand=brand or None,
            category=category or None,
        )
        with stage_duration_seconds.labels(stage="research").time():
            hits = await self.collect(product_name, brand, category or "")
            research = self.extract(hits, brand)
        logger.info(
            "Market research complete",
            pain_points=len(research.pain_points),
            competitors=len(research.competitors),
            competitor_ads=len(research.competitor_ads),
        )
        return research

    async def run_model_research(
        self, product_name: str, brand: str | None = None, category: str | None = None
    ) -> MarketResearch:
        """Ask the completion service directly for pain points and competitors.

        No ad discovery happens on this path. Each of the two requests fails
        independently to an empty list.
        """
        llm = self.llm
        if llm is None:
            return MarketResearch()

        qualifiers = (brand and f"by {brand}", category and f"in the {category} category")
        context = " ".join(part for part in (product_name, *qualifiers) if part)
        switch_target = brand or product_name
        pain_prompt = (
            f'Research user feedback and pain points for "{context}".\n\n'
            "List customer complaints and negative reviews, missing features users "
            "frequently request, usability and reliability problems, and pricing or "
            "value concerns, as they appear on Reddit, G2, Capterra, X and user forums. "
            "Focus on specific, actionable insights a product team could address."
        )
        competitor_prompt = (
            f'List direct competitor products to "{context}" that users actively compare '
            f"or switch to: products mentioned in \"vs\" comparisons, products users switched "
            f"to or from {switch_target}, and direct alternatives in the same price range. "
            "For each give the exact product name, company, pricing if known, and its key "
            "differentiator."
        )
        system = "You are a market research analyst. Only report findings you are confident about."

        async def pains() -> PainPointsOutput:
            try:
                return await llm.generate(pain_prompt, PainPointsOutput, system=system)
            except Exception as exc:
                logger.warning("Model pain point research failed", error=str(exc))
                return PainPointsOutput()

        async def rivals() -> CompetitorsOutput:
            try:
                return await llm.generate(competitor_prompt, CompetitorsOutput, system=system)
            except Exception as exc:
                logger.warning("Model competitor research failed", error=str(exc))
                return CompetitorsOutput()

        pain_out, rival_out = await asyncio.gather(pains(), rivals())

        pain_points = [
            PainPoint(
                issue=p.issue[: self.policy.max_issue_chars],
                frequency=p.frequency,
                sentiment=p.sentiment,
                source=p.source,
            )
            for p in pain_out.pain_points[: self.settings.max_pain_points]
        ]
        competitors = [
            CompetitorProduct(
                product_name=c.product_name,
                brand=c.brand,
                price=c.price,
                key_difference=c.key_difference,
            )
            for c in rival_out.competitors[: self.settings.max_competitors]
        ]
        return MarketResearch(
            pain_points=pain_points,
            competitors=competitors,
            market_summary=summarize(len(pain_points), len(competitors), 0),
        )

    async def research_with_fallback(
        self, product_name: str, brand: str | None = None, category: str | None = None
    ) -> MarketResearch:
        """Search-based research, replaced by model research when it found nothing.

        The model result is only used if it has at least one pain point or
        competitor.
        """
        research = await self.run_research(product_name, brand, category)
        if not research.is_empty or self.llm is None:
            return research

        logger.info("Search research returned nothing, trying model research")
        fallback = await self.run_model_research(product_name, brand, category)
        if fallback.pain_points or fallback.competitors:
            return fallback
        return research
