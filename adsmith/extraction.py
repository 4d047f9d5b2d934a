"""Heuristic entity extraction from scraped search results.

Turns one scraped result (title, description, markdown body) plus the
intent of the query that found it into at most one typed research record.
Everything here is a pure function of its inputs.

All heuristics are driven by :class:`ExtractionPolicy`. Its keyword and
pattern lists are *ordered*: the first match wins, so reordering an entry
changes classification. The numeric thresholds are tuning values, not
correctness constraints.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from adsmith.models.research import (
    AdPlatform,
    CompetitorAd,
    CompetitorProduct,
    Frequency,
    PainPoint,
    ResearchIntent,
    SearchHit,
    Sentiment,
)

CRITICAL_WORDS: tuple[str, ...] = (
    "terrible", "worst", "broken", "unusable", "scam", "avoid",
    "disaster", "awful", "hate", "garbage", "waste",
)  # fmt: skip

MODERATE_WORDS: tuple[str, ...] = (
    "problem", "issue", "disappointing", "frustrated", "annoying",
    "slow", "confusing", "expensive", "lacking", "wish",
)  # fmt: skip

FEEDBACK_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:I wish|wish it|should have|needs to|missing)[^.]{10,120}", re.I),
    re.compile(r"(?:the|main|biggest)\s+(?:problem|issue|complaint|downside)[^.]{10,120}", re.I),
    re.compile(r"(?:doesn't|does not|won't|can't|cannot)\s+[^.]{10,100}", re.I),
    re.compile(r"too\s+(?:slow|expensive|confusing|complicated|buggy)[^.]{10,100}", re.I),
    re.compile(r"feature\s+(?:request|missing|needed|lacking)[^.]{10,100}", re.I),
)

FREQUENCY_LADDER: tuple[tuple[Frequency, tuple[str, ...]], ...] = (
    ("widespread issue", ("everyone", "all users", "common issue")),
    ("frequently mentioned", ("many", "most", "lots of")),
    ("occasionally mentioned", ("some", "few", "occasionally")),
)

COMPETITOR_TITLE_CLEANUP: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s*[-|]\s*(?:G2|Capterra|Product Hunt|Amazon|Best Buy).*$", re.I),
    re.compile(r"^Best\s+", re.I),
    re.compile(r"\s+Review$", re.I),
    re.compile(r"\s+vs\.?\s+.*$", re.I),
    re.compile(r"\s+alternatives?.*$", re.I),
)

_BRAND_TOKEN = re.compile(r"(?:by\s+)?([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)")
_PRICE = re.compile(r"\$\d{1,4}(?:\.\d{2})?(?:/mo(?:nth)?)?|\d+(?:\.\d{2})?\s*(?:USD|EUR)", re.I)
_DIFFERENCE = re.compile(
    r"(?:features?|offers?|provides?|includes?|known for|stands out|specializes?|focuses?)"
    r"[^.]{10,100}",
    re.I,
)

KNOWN_BRANDS_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "footwear": (
        "Nike", "Adidas", "New Balance", "Puma", "Reebok", "Asics", "Brooks", "Saucony",
        "Hoka", "On Running", "On Cloud", "Jordan", "Converse", "Vans", "Timberland",
        "Dr. Martens", "UGG", "Clarks",
    ),
    "electronics": (
        "Apple", "Samsung", "Sony", "Bose", "Google", "Microsoft", "Dell", "HP", "Lenovo",
        "Asus", "Beats", "JBL", "Sennheiser", "Jabra", "Nothing", "OnePlus", "Xiaomi", "Oppo",
    ),
    "apparel": (
        "Lululemon", "Under Armour", "Gymshark", "Athleta", "North Face", "Patagonia",
        "Columbia", "Arc'teryx", "Gap", "H&M", "Zara", "Uniqlo",
    ),
    "beauty": (
        "CeraVe", "The Ordinary", "La Roche-Posay", "Drunk Elephant", "Tatcha",
        "Maybelline", "L'Oreal", "MAC", "Fenty",
    ),
    "home": (
        "Dyson", "Vitamix", "Ninja", "KitchenAid", "Casper", "Purple", "Tempur-Pedic",
        "Roomba", "Shark",
    ),
    "fitness": ("Fitbit", "Garmin", "Whoop", "Peloton", "NordicTrack"),
}  # fmt: skip

KNOWN_BRANDS: tuple[str, ...] = tuple(
    brand for brands in KNOWN_BRANDS_BY_CATEGORY.values() for brand in brands
)

AD_TITLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"^([A-Z][a-zA-Z0-9]+(?:\s+[A-Z][a-zA-Z0-9]+)?)\s+(?:ad|commercial|review|vs|comparison)",
        re.I,
    ),
    re.compile(r"by\s+([A-Z][a-zA-Z0-9]+(?:\s+[A-Z][a-zA-Z0-9]+)?)", re.I),
    re.compile(r"([A-Z][a-zA-Z0-9]+)\s+(?:official|brand|channel)", re.I),
)

_FIRST_CAPITALIZED = re.compile(r"^([A-Z][a-zA-Z0-9]+)")

CALL_TO_ACTION_PHRASES: tuple[str, ...] = (
    "shop now", "buy now", "order now", "learn more", "sign up", "get yours",
    "link in bio", "use code", "try it free", "download now",
)  # fmt: skip

SPONSORED_MARKERS: tuple[str, ...] = ("sponsored", "#ad", "paid partnership")

PLACEHOLDER_COMPETITOR = "Competitor Brand"


@dataclass(frozen=True)
class ExtractionPolicy:
    """Ordered keyword/pattern lists and thresholds for extraction."""

    critical_words: tuple[str, ...] = CRITICAL_WORDS
    moderate_words: tuple[str, ...] = MODERATE_WORDS
    feedback_patterns: tuple[re.Pattern[str], ...] = FEEDBACK_PATTERNS
    frequency_ladder: tuple[tuple[Frequency, tuple[str, ...]], ...] = FREQUENCY_LADDER
    known_brands: tuple[str, ...] = KNOWN_BRANDS
    ad_title_patterns: tuple[re.Pattern[str], ...] = AD_TITLE_PATTERNS
    cta_phrases: tuple[str, ...] = CALL_TO_ACTION_PHRASES
    brand_exclusion_threshold: int = 3
    max_issue_chars: int = 150
    min_content_for_patterns: int = 50
    _brand_patterns: dict[str, re.Pattern[str]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def brand_pattern(self, brand: str) -> re.Pattern[str]:
        pattern = self._brand_patterns.get(brand)
        if pattern is None:
            pattern = re.compile(rf"(?<![a-z0-9]){re.escape(brand.lower())}(?![a-z0-9])")
            self._brand_patterns[brand] = pattern
        return pattern


DEFAULT_POLICY = ExtractionPolicy()


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``; falls back to the raw URL segment."""
    host = urlparse(url).hostname
    if host:
        return host.removeprefix("www.")
    parts = url.split("/")
    return parts[2] if len(parts) > 2 else "unknown"


def _body(hit: SearchHit) -> str:
    return hit.content or hit.description


# --- Pain points ---


def classify_sentiment(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Sentiment:
    """Critical keywords beat moderate ones; no match is minor."""
    lowered = text.lower()
    if any(word in lowered for word in policy.critical_words):
        return Sentiment.CRITICAL
    if any(word in lowered for word in policy.moderate_words):
        return Sentiment.MODERATE
    return Sentiment.MINOR


def classify_frequency(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Frequency:
    lowered = text.lower()
    for label, words in policy.frequency_ladder:
        if any(word in lowered for word in words):
            return label
    return "user reported"


def extract_issue(title: str, content: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> str:
    """First matching feedback pattern in *content*, else the title."""
    issue = title
    if len(content) > policy.min_content_for_patterns:
        for pattern in policy.feedback_patterns:
            match = pattern.search(content)
            if match:
                issue = match.group(0).strip()
                break
    return issue[: policy.max_issue_chars]


def extract_pain_point(hit: SearchHit, policy: ExtractionPolicy = DEFAULT_POLICY) -> PainPoint:
    content = _body(hit)
    text = f"{hit.title} {content}"
    return PainPoint(
        issue=extract_issue(hit.title, content, policy),
        frequency=classify_frequency(text, policy),
        sentiment=classify_sentiment(text, policy),
        source=extract_domain(hit.url),
        url=hit.url,
    )


# --- Competitor products ---


def clean_competitor_title(title: str) -> str:
    """Strip site-name suffixes and listicle/comparison boilerplate."""
    cleaned = title
    for pattern in COMPETITOR_TITLE_CLEANUP:
        cleaned = pattern.sub("", cleaned)
    return cleaned[:80]


def extract_competitor(
    hit: SearchHit, policy: ExtractionPolicy = DEFAULT_POLICY
) -> CompetitorProduct:
    content = _body(hit)
    product_name = clean_competitor_title(hit.title)

    brand_match = _BRAND_TOKEN.search(content)
    if brand_match:
        brand = brand_match.group(1)
    else:
        tokens = product_name.split()
        brand = tokens[0] if tokens else ""

    price_match = _PRICE.search(content)

    key_difference = hit.description[:150]
    difference_match = _DIFFERENCE.search(content)
    if difference_match:
        key_difference = difference_match.group(0).strip()[:150]

    return CompetitorProduct(
        product_name=product_name[:100],
        brand=brand,
        price=price_match.group(0) if price_match else None,
        key_difference=key_difference or "See source for details",
        url=hit.url,
        source=extract_domain(hit.url),
    )


# --- Competitor ads ---


def is_self_brand(name: str, brand: str) -> bool:
    """Case-insensitive, substring-inclusive match against the researched brand."""
    name_l = name.strip().lower()
    brand_l = brand.strip().lower()
    if not name_l or not brand_l:
        return False
    return brand_l in name_l or name_l in brand_l


def brand_occurrences(text: str, brand: str) -> int:
    if not brand:
        return 0
    return text.lower().count(brand.lower())


def detect_platform(url: str) -> AdPlatform:
    lowered = url.lower()
    if "instagram.com" in lowered:
        return "instagram"
    if "tiktok.com" in lowered:
        return "tiktok"
    if "youtube.com" in lowered or "youtu.be" in lowered:
        return "youtube"
    return "other"


def find_call_to_action(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> str | None:
    lowered = text.lower()
    for phrase in policy.cta_phrases:
        if phrase in lowered:
            return phrase.capitalize()
    return None


def attribute_competitor(
    title: str, full_text: str, brand: str, policy: ExtractionPolicy = DEFAULT_POLICY
) -> str:
    """Pick the advertiser name: known brand, then title pattern, then first word."""
    lowered = full_text.lower()
    for known in policy.known_brands:
        if is_self_brand(known, brand):
            continue
        if policy.brand_pattern(known).search(lowered):
            return known

    for pattern in policy.ad_title_patterns:
        match = pattern.search(title)
        if match and match.group(1) and not is_self_brand(match.group(1), brand):
            return match.group(1)

    first_word = _FIRST_CAPITALIZED.match(title)
    if first_word and len(first_word.group(1)) > 2:
        return first_word.group(1)
    return PLACEHOLDER_COMPETITOR


def extract_competitor_ad(
    hit: SearchHit, brand: str, policy: ExtractionPolicy = DEFAULT_POLICY
) -> CompetitorAd | None:
    """Build a competitor ad record, or None when it belongs to the researched brand."""
    combined = f"{hit.title} {hit.content} {hit.description}"
    if brand and brand_occurrences(combined, brand) > policy.brand_exclusion_threshold:
        return None

    content = _body(hit)
    full_text = f"{hit.title} {content}"
    competitor_name = attribute_competitor(hit.title, full_text, brand, policy)[:50]
    if is_self_brand(competitor_name, brand):
        return None

    content_l = content.lower()
    sponsored = any(marker in content_l for marker in SPONSORED_MARKERS)
    description = hit.description[:200]
    if "sponsored" in content_l or "#ad" in content_l:
        description = f"[Sponsored] {description}"

    return CompetitorAd(
        platform=detect_platform(hit.url),
        competitor_name=competitor_name,
        title=hit.title[:100],
        description=description or None,
        call_to_action=find_call_to_action(full_text, policy),
        url=hit.url,
        is_active=sponsored,
        source=extract_domain(hit.url),
    )


def dedupe_ads_by_competitor(ads: list[CompetitorAd]) -> list[CompetitorAd]:
    """Keep the first ad per competitor name."""
    seen: set[str] = set()
    unique: list[CompetitorAd] = []
    for ad in ads:
        if ad.competitor_name in seen:
            continue
        seen.add(ad.competitor_name)
        unique.append(ad)
    return unique


def extract_record(
    hit: SearchHit, brand: str = "", policy: ExtractionPolicy = DEFAULT_POLICY
) -> PainPoint | CompetitorProduct | CompetitorAd | None:
    """Dispatch *hit* to the extractor for its intent."""
    if hit.intent is ResearchIntent.PAIN_POINT:
        return extract_pain_point(hit, policy)
    if hit.intent is ResearchIntent.COMPETITOR:
        return extract_competitor(hit, policy)
    return extract_competitor_ad(hit, brand, policy)
