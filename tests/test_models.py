"""Tests for result and record models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from adsmith.models import (
    ClipMediaResult,
    ClipMediaSuccess,
    Failure,
    MarketResearch,
    PainPoint,
    ProductInfo,
    ScrapeResult,
    ScrapeSuccess,
)


class TestProductInfo:
    def test_scrape_payload_aliases_and_coercion(self) -> None:
        product = ProductInfo.model_validate(
            {
                "title": "Cloud Runner",
                "price": 129.99,
                "reviewCount": 412,
                "rating": 7,
                "imageUrl": "https://img.test/1.jpg",
                "brand": None,
            }
        )
        assert product.price == "129.99"
        assert product.review_count == "412"
        assert product.rating == 5.0
        assert product.image_url == "https://img.test/1.jpg"
        assert product.brand == ""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("4.6 out of 5 stars", 4.6), ("4,2", 4.2), ("N/A", None), ("", None), ("9 / 10", 5.0)],
    )
    def test_rating_from_text(self, raw: str, expected: float | None) -> None:
        assert ProductInfo.model_validate({"title": "X", "rating": raw}).rating == expected

    def test_single_string_lists_are_wrapped(self) -> None:
        product = ProductInfo.model_validate(
            {"features": "Waterproof, light", "imageUrls": "https://img.test/1.jpg"}
        )
        assert product.features == ["Waterproof, light"]
        assert product.image_urls == ["https://img.test/1.jpg"]

    def test_blank_list_entries_dropped(self) -> None:
        product = ProductInfo.model_validate({"features": ["Grippy", "", None, " Light "]})
        assert product.features == ["Grippy", "Light"]

    def test_unknown_frequency_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PainPoint(issue="Squeaks", frequency="commonly reported")  # type: ignore[arg-type]

    def test_display_name(self) -> None:
        assert ProductInfo(brand="Acme").display_name == "Acme"
        assert ProductInfo().display_name == "this product"


class TestMarketResearch:
    def test_is_empty(self) -> None:
        assert MarketResearch().is_empty
        assert not MarketResearch(pain_points=[PainPoint(issue="Squeaks")]).is_empty

    def test_issue_length_bound(self) -> None:
        with pytest.raises(ValidationError):
            PainPoint(issue="x" * 151)


class TestResultUnions:
    def test_discriminates_on_success(self) -> None:
        adapter = TypeAdapter(ClipMediaResult)
        ok = adapter.validate_python(
            {
                "success": True,
                "mux_playback_id": "p",
                "mux_asset_id": "a",
                "scene_count": 4,
                "audio_duration": 15.0,
            }
        )
        assert isinstance(ok, ClipMediaSuccess)
        failed = adapter.validate_python({"success": False, "error": "Video: scene 2 failed"})
        assert isinstance(failed, Failure)

    def test_scrape_result_round_trip(self) -> None:
        result = ScrapeSuccess(data=ProductInfo(title="Cloud Runner"), url="https://a.test")
        restored = TypeAdapter(ScrapeResult).validate_json(result.model_dump_json())
        assert restored == result
