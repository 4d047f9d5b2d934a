"""Tests for heuristic entity extraction."""

from __future__ import annotations

from adsmith.extraction import (
    DEFAULT_POLICY,
    PLACEHOLDER_COMPETITOR,
    ExtractionPolicy,
    attribute_competitor,
    classify_frequency,
    classify_sentiment,
    clean_competitor_title,
    dedupe_ads_by_competitor,
    detect_platform,
    extract_competitor,
    extract_competitor_ad,
    extract_domain,
    extract_issue,
    extract_pain_point,
    extract_record,
    find_call_to_action,
    is_self_brand,
)
from adsmith.models.research import (
    CompetitorAd,
    CompetitorProduct,
    PainPoint,
    ResearchIntent,
    SearchHit,
    Sentiment,
)


def _hit(
    title: str,
    content: str = "",
    *,
    url: str = "https://www.reddit.com/r/running/comments/abc",
    description: str = "",
    intent: ResearchIntent = ResearchIntent.PAIN_POINT,
) -> SearchHit:
    return SearchHit(url=url, title=title, description=description, content=content, intent=intent)


class TestExtractDomain:
    def test_strips_www(self) -> None:
        assert extract_domain("https://www.reddit.com/r/x") == "reddit.com"

    def test_keeps_subdomain(self) -> None:
        assert extract_domain("https://old.reddit.com/r/x") == "old.reddit.com"


class TestSentiment:
    def test_critical_beats_moderate(self) -> None:
        assert classify_sentiment("Slow and honestly the worst purchase") is Sentiment.CRITICAL

    def test_moderate(self) -> None:
        assert classify_sentiment("A bit disappointing in the rain") is Sentiment.MODERATE

    def test_minor_by_default(self) -> None:
        assert classify_sentiment("Runs half a size small") is Sentiment.MINOR


class TestFrequency:
    def test_ladder_order(self) -> None:
        # "everyone" sits above "many" on the ladder
        assert classify_frequency("Many people say everyone has this") == "widespread issue"

    def test_frequently(self) -> None:
        assert classify_frequency("Lots of runners mention it") == "frequently mentioned"

    def test_occasionally(self) -> None:
        assert classify_frequency("A few reviews bring it up") == "occasionally mentioned"

    def test_default(self) -> None:
        assert classify_frequency("Heel slips on downhill") == "user reported"


class TestExtractIssue:
    def test_short_content_uses_title(self) -> None:
        assert extract_issue("Heel slip problem", "too short") == "Heel slip problem"

    def test_first_pattern_wins(self) -> None:
        content = (
            "Great shoe overall. The biggest complaint is the narrow toe box for wide feet. "
            "I wish it came in a wide version for people like me."
        )
        # "I wish" is the first pattern in the list, so it wins over "biggest complaint"
        assert extract_issue("Review", content).startswith("I wish it came in a wide version")

    def test_truncated_to_limit(self) -> None:
        title = "x" * 300
        assert len(extract_issue(title, "")) == DEFAULT_POLICY.max_issue_chars


class TestPainPoint:
    def test_builds_record(self) -> None:
        hit = _hit(
            "Cloud Runner sole is terrible",
            "Everyone on this thread says the sole doesn't hold up after a couple of months "
            "of regular road running.",
        )
        point = extract_pain_point(hit)
        assert isinstance(point, PainPoint)
        assert point.sentiment is Sentiment.CRITICAL
        assert point.frequency == "widespread issue"
        assert point.source == "reddit.com"
        assert point.url == hit.url
        assert point.issue.startswith("doesn't hold up")

    def test_is_pure(self) -> None:
        hit = _hit("Laces keep coming undone", "Some users find the laces too slippery.")
        assert extract_pain_point(hit) == extract_pain_point(hit)


class TestCompetitor:
    def test_clean_title(self) -> None:
        assert clean_competitor_title("Best Brooks Ghost 16 Review") == "Brooks Ghost 16"
        assert clean_competitor_title("Hoka Clifton 9 - G2 Reviews") == "Hoka Clifton 9"
        assert clean_competitor_title("Pegasus 41 vs Cloud Runner") == "Pegasus 41"

    def test_extracts_price_and_difference(self) -> None:
        hit = _hit(
            "Hoka Clifton 9 - Amazon",
            "Made by Hoka. Priced at $145.00. It offers a much softer midsole for long runs.",
            url="https://www.runnersworld.com/clifton",
            intent=ResearchIntent.COMPETITOR,
        )
        comp = extract_competitor(hit)
        assert isinstance(comp, CompetitorProduct)
        assert comp.product_name == "Hoka Clifton 9"
        assert comp.price == "$145.00"
        assert comp.key_difference.startswith("offers a much softer midsole")
        assert comp.source == "runnersworld.com"

    def test_difference_falls_back_to_description(self) -> None:
        hit = _hit(
            "Saucony Ride",
            "",
            description="A daily trainer.",
            intent=ResearchIntent.COMPETITOR,
        )
        assert extract_competitor(hit).key_difference == "A daily trainer."


class TestSelfBrand:
    def test_case_insensitive_substring_both_ways(self) -> None:
        assert is_self_brand("ACME", "Acme")
        assert is_self_brand("Acme Running", "acme")
        assert is_self_brand("Acme", "Acme Sports Co")

    def test_empty_never_matches(self) -> None:
        assert not is_self_brand("", "Acme")
        assert not is_self_brand("Nike", "")


class TestCompetitorAd:
    def test_known_brand_attribution(self) -> None:
        hit = _hit(
            "Top trail shoe commercial",
            "The new Brooks Cascadia spot. Shop now. #ad",
            url="https://www.youtube.com/watch?v=1",
            intent=ResearchIntent.COMPETITOR_AD,
        )
        ad = extract_competitor_ad(hit, "Acme")
        assert isinstance(ad, CompetitorAd)
        assert ad.competitor_name == "Brooks"
        assert ad.platform == "youtube"
        assert ad.call_to_action == "Shop now"
        assert ad.is_active is True

    def test_known_brands_match_whole_words(self) -> None:
        # "Machine" contains "mac" but MAC must not be attributed
        name = attribute_competitor("Washing machine ad", "Washing machine ad", "Acme")
        assert name != "MAC"

    def test_title_pattern_then_first_word(self) -> None:
        assert attribute_competitor("Zephyr commercial 2025", "", "Acme") == "Zephyr"
        assert attribute_competitor("lowercase words only", "", "Acme") == PLACEHOLDER_COMPETITOR

    def test_never_attributes_own_brand(self) -> None:
        hit = _hit(
            "Acme Cloud Runner ad",
            "Cloud Runner by Acme is here.",
            url="https://www.tiktok.com/@acme/video/1",
            intent=ResearchIntent.COMPETITOR_AD,
        )
        assert extract_competitor_ad(hit, "Acme") is None

    def test_excluded_when_brand_mentioned_often(self) -> None:
        # Tuning-sensitive: depends on the exclusion threshold of 3
        hit = _hit(
            "Brooks vs Acme",
            "Acme shoes. Acme fit. Acme price. Brooks is better.",
            intent=ResearchIntent.COMPETITOR_AD,
        )
        assert extract_competitor_ad(hit, "Acme") is None
        lenient = ExtractionPolicy(brand_exclusion_threshold=10)
        ad = extract_competitor_ad(hit, "Acme", lenient)
        assert ad is not None
        assert ad.competitor_name == "Brooks"

    def test_sponsored_prefix(self) -> None:
        hit = _hit(
            "Nike Pegasus ad",
            "Sponsored post from the Nike team",
            description="Fast shoe",
            url="https://www.instagram.com/p/1",
            intent=ResearchIntent.COMPETITOR_AD,
        )
        ad = extract_competitor_ad(hit, "Acme")
        assert ad is not None
        assert ad.description == "[Sponsored] Fast shoe"
        assert ad.platform == "instagram"

    def test_dedupe_keeps_first(self) -> None:
        first = CompetitorAd(platform="other", competitor_name="Nike", title="a", url="u1")
        second = CompetitorAd(platform="other", competitor_name="Nike", title="b", url="u2")
        third = CompetitorAd(platform="other", competitor_name="Hoka", title="c", url="u3")
        assert dedupe_ads_by_competitor([first, second, third]) == [first, third]


class TestHelpers:
    def test_detect_platform(self) -> None:
        assert detect_platform("https://youtu.be/abc") == "youtube"
        assert detect_platform("https://example.com") == "other"

    def test_cta_order(self) -> None:
        assert find_call_to_action("Learn more or shop now") == "Shop now"
        assert find_call_to_action("nothing here") is None


class TestDispatch:
    def test_routes_by_intent(self) -> None:
        assert isinstance(extract_record(_hit("Bad laces")), PainPoint)
        comp = _hit("Hoka Clifton", intent=ResearchIntent.COMPETITOR)
        assert isinstance(extract_record(comp), CompetitorProduct)
        ad = _hit("Nike ad", "Shop now", intent=ResearchIntent.COMPETITOR_AD)
        assert isinstance(extract_record(ad, "Acme"), CompetitorAd)
