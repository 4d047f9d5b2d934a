"""Market research records produced by extraction and the research orchestrator."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from adsmith.models.base import Failure


class ResearchIntent(StrEnum):
    """Which extraction heuristic a search result is routed to."""

    PAIN_POINT = "painpoint"
    COMPETITOR = "competitor"
    COMPETITOR_AD = "competitorAd"


class Sentiment(StrEnum):
    CRITICAL = "critical"
    MODERATE = "moderate"
    MINOR = "minor"


Frequency = Literal[
    "widespread issue",
    "frequently mentioned",
    "occasionally mentioned",
    "user reported",
]

AdPlatform = Literal["instagram", "tiktok", "youtube", "other"]


class PainPoint(BaseModel):
    """A user-reported complaint or feature gap."""

    model_config = ConfigDict(frozen=True)

    issue: str = Field(max_length=150)
    frequency: Frequency = "user reported"
    sentiment: Sentiment = Sentiment.MINOR
    source: str | None = None
    url: str | None = None


class CompetitorProduct(BaseModel):
    """A directly comparable product from another brand."""

    model_config = ConfigDict(frozen=True)

    product_name: str
    brand: str
    price: str | None = None
    key_difference: str
    url: str | None = None
    source: str | None = None


class CompetitorAd(BaseModel):
    """An advertisement attributed to a brand other than the one researched."""

    model_config = ConfigDict(frozen=True)

    platform: AdPlatform = "other"
    competitor_name: str
    title: str
    description: str | None = None
    call_to_action: str | None = None
    url: str
    is_active: bool = False
    source: str | None = None


class MarketResearch(BaseModel):
    """Aggregate research for one product, rebuilt from scratch on every run."""

    model_config = ConfigDict(frozen=True)

    pain_points: list[PainPoint] = Field(default_factory=list)
    competitors: list[CompetitorProduct] = Field(default_factory=list)
    competitor_ads: list[CompetitorAd] = Field(default_factory=list)
    market_summary: str | None = None
    sources: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when no category produced a record.

        This is the single definition of "research succeeded" used by both
        the search path and the model-driven fallback.
        """
        return not (self.pain_points or self.competitors or self.competitor_ads)


class SearchHit(BaseModel):
    """One normalised search result, tagged with the intent of its query."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str
    description: str = ""
    content: str = ""
    intent: ResearchIntent


class ResearchSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    research: MarketResearch


ResearchResult = ResearchSuccess | Failure


# --- Ad intelligence ---

AdIntelPlatform = Literal["meta", "tiktok", "google", "other"]


class AdIntelItem(BaseModel):
    """A competitor ad as summarised from ad-library style sources."""

    model_config = ConfigDict(frozen=True)

    platform: AdIntelPlatform = "other"
    competitor_name: str
    headline: str = ""
    ad_copy: str = ""
    call_to_action: str = ""
    page_url: str = ""
    is_active: bool = False


class AdIntelligenceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    ads: list[AdIntelItem] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)


AdIntelligenceOutcome = AdIntelligenceResult | Failure


# --- Model-driven fallback output schemas ---


class PainPointDraft(BaseModel):
    issue: str = Field(
        description="Specific user complaint, missing feature, or problem. Be concrete."
    )
    frequency: Frequency = Field(
        default="user reported",
        description="How widespread the issue is",
    )
    sentiment: Sentiment = Field(
        default=Sentiment.MODERATE,
        description="critical = deal-breaker, moderate = frustrating, minor = nice-to-fix",
    )
    source: str | None = Field(default=None, description="Where this was found")


class PainPointsOutput(BaseModel):
    pain_points: list[PainPointDraft] = Field(default_factory=list)


class CompetitorDraft(BaseModel):
    product_name: str = Field(description="Exact competing product name, not the brand")
    brand: str = Field(description="Company or brand that makes the product")
    price: str | None = Field(default=None, description="Pricing info if known")
    key_difference: str = Field(description="Why users choose this over the target product")


class CompetitorsOutput(BaseModel):
    competitors: list[CompetitorDraft] = Field(default_factory=list)
