"""Re-exports all Pydantic models."""

from adsmith.models.base import Failure
from adsmith.models.creative import (
    SCENE_COUNT,
    SCENE_LABELS,
    ClipMediaResult,
    ClipMediaSuccess,
    CreativeOutput,
    VideoClip,
)
from adsmith.models.outreach import (
    EmailContent,
    EmailDraft,
    EmailSent,
    EmailStatus,
    Influencer,
    InfluencerCandidate,
    InfluencerExtraction,
    InfluencerSearchResult,
    InfluencerSearchSuccess,
    SendResult,
    apply_send_result,
)
from adsmith.models.product import PRODUCT_SCRAPE_SCHEMA, ProductInfo
from adsmith.models.research import (
    AdIntelItem,
    AdIntelligenceOutcome,
    AdIntelligenceResult,
    CompetitorAd,
    CompetitorProduct,
    MarketResearch,
    PainPoint,
    ResearchIntent,
    ResearchResult,
    ResearchSuccess,
    SearchHit,
    Sentiment,
)
from adsmith.models.scrape import ScrapeResult, ScrapeSuccess

__all__ = [
    "PRODUCT_SCRAPE_SCHEMA",
    "SCENE_COUNT",
    "SCENE_LABELS",
    "AdIntelItem",
    "AdIntelligenceOutcome",
    "AdIntelligenceResult",
    "ClipMediaResult",
    "ClipMediaSuccess",
    "CompetitorAd",
    "CompetitorProduct",
    "CreativeOutput",
    "EmailContent",
    "EmailDraft",
    "EmailSent",
    "EmailStatus",
    "Failure",
    "Influencer",
    "InfluencerCandidate",
    "InfluencerExtraction",
    "InfluencerSearchResult",
    "InfluencerSearchSuccess",
    "MarketResearch",
    "PainPoint",
    "ProductInfo",
    "ResearchIntent",
    "ResearchResult",
    "ResearchSuccess",
    "ScrapeResult",
    "ScrapeSuccess",
    "SearchHit",
    "Sentiment",
    "SendResult",
    "VideoClip",
    "apply_send_result",
]
