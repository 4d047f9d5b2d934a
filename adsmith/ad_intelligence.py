"""Competitor ad intelligence from ad-library style web searches.

Three searches run concurrently and the hits are summarised by the
completion service into a JSON array of ads. The service's output is
parsed defensively: anything that is not a JSON array yields no ads, and
individual malformed entries are dropped.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from adsmith.extraction import is_self_brand
from adsmith.metrics import stage_duration_seconds
from adsmith.models.base import Failure
from adsmith.models.research import AdIntelItem, AdIntelligenceOutcome, AdIntelligenceResult
from adsmith.storyboard import strip_code_fences

if TYPE_CHECKING:
    from adsmith.clients.firecrawl import FirecrawlClient, FirecrawlSearchItem
    from adsmith.llm import LLMClient

logger = structlog.get_logger()

SEARCH_LIMIT = 6
MAX_ADS = 12

SYSTEM_PROMPT = """You analyse competitor advertising for a brand.

From the search results, list ads run by competing brands. For each ad return an object with:
- platform: one of "meta", "tiktok", "google", "other"
- competitorName: the advertiser
- headline: the ad headline, if visible
- adCopy: the primary text, if visible
- callToAction: the button or closing call to action, if visible
- pageUrl: the URL where the ad or advertiser page was found
- isActive: true if the source says the ad is currently running

Only include ads that are evidenced by the results. Do not include the brand being researched.
Return ONLY a JSON array. Return [] if nothing qualifies."""

_PLATFORM_ALIASES = {
    "facebook": "meta",
    "instagram": "meta",
    "meta": "meta",
    "tiktok": "tiktok",
    "google": "google",
    "youtube": "google",
}


def build_ad_queries(product_name: str, brand: str, category: str) -> list[str]:
    subject = category or product_name
    return [
        f"facebook ad library {subject} ads {brand}".strip(),
        f"tiktok creative center top ads {subject}",
        f"google ads transparency {subject} competitors of {brand or product_name}",
    ]


def _normalise_item(raw: dict[str, Any]) -> dict[str, Any]:
    platform = str(raw.get("platform", "other")).strip().lower()
    return {
        "platform": _PLATFORM_ALIASES.get(platform, "other"),
        "competitor_name": raw.get("competitorName") or raw.get("competitor_name") or "",
        "headline": raw.get("headline") or "",
        "ad_copy": raw.get("adCopy") or raw.get("ad_copy") or "",
        "call_to_action": raw.get("callToAction") or raw.get("call_to_action") or "",
        "page_url": raw.get("pageUrl") or raw.get("page_url") or "",
        "is_active": bool(raw.get("isActive", raw.get("is_active", False))),
    }


def parse_ad_items(text: str, brand: str = "") -> list[AdIntelItem]:
    """Parse the completion output into ads, dropping the researched brand's own."""
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        logger.warning("Ad intelligence output is not JSON", preview=text[:120])
        return []
    if isinstance(data, dict):
        data = data.get("ads", [])
    if not isinstance(data, list):
        return []

    ads: list[AdIntelItem] = []
    for raw in data:
        if not isinstance(raw, dict):
            continue
        try:
            item = AdIntelItem(**_normalise_item(raw))
        except ValidationError:
            continue
        if not item.competitor_name.strip():
            continue
        if brand and is_self_brand(item.competitor_name, brand):
            continue
        ads.append(item)
    return ads[:MAX_ADS]


class AdIntelligenceAnalyzer:
    def __init__(self, firecrawl: FirecrawlClient, llm: LLMClient) -> None:
        self.firecrawl = firecrawl
        self.llm = llm

    async def _search(self, query: str) -> list[FirecrawlSearchItem]:
        try:
            return await self.firecrawl.search(query, limit=SEARCH_LIMIT)
        except Exception as exc:
            logger.warning("Ad intelligence search failed", query=query[:80], error=str(exc))
            return []

    async def analyze(
        self, product_name: str, brand: str = "", category: str = ""
    ) -> AdIntelligenceOutcome:
        with stage_duration_seconds.labels(stage="ad_intelligence").time():
            batches = await asyncio.gather(
                *(self._search(q) for q in build_ad_queries(product_name, brand, category))
            )
            hits: list[FirecrawlSearchItem] = []
            seen: set[str] = set()
            for item in (item for batch in batches for item in batch):
                if item["url"] not in seen:
                    seen.add(item["url"])
                    hits.append(item)
            if not hits:
                return AdIntelligenceResult(ads=[], sources=[])

            listing = "\n".join(
                f"- {item['title']} ({item['url']}): {item['description']}" for item in hits
            )
            prompt = (
                f"Brand being researched: {brand or 'unknown'}\n"
                f"Product: {product_name}\nCategory: {category or 'unknown'}\n\n"
                f"Search results:\n{listing}"
            )
            try:
                text = await self.llm.generate_text(
                    prompt, system=SYSTEM_PROMPT, temperature=0.2, max_tokens=2000
                )
            except Exception as exc:
                logger.warning("Ad intelligence summary failed", error=str(exc))
                return Failure(error=f"Ad intelligence failed: {exc}")

        ads = parse_ad_items(text, brand)
        logger.info("Ad intelligence complete", sources=len(hits), ads=len(ads))
        return AdIntelligenceResult(ads=ads, sources=[item["url"] for item in hits])
