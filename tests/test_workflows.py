"""Tests for top-level workflows and service wiring."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest
import respx
from click.testing import CliRunner

from adsmith.cli import cli
from adsmith.config import Settings
from adsmith.errors import ServiceNotConfiguredError
from adsmith.models.base import Failure
from adsmith.models.creative import VideoClip
from adsmith.models.outreach import EmailDraft, Influencer
from adsmith.models.product import ProductInfo
from adsmith.models.research import ResearchSuccess
from adsmith.models.scrape import ScrapeSuccess
from adsmith.services import Services
from adsmith.workflows import (
    find_influencers,
    generate_clip_media,
    generate_storyboards,
    is_valid_url,
    refresh_product_research,
    scrape_product_url,
    send_outreach_email,
)

SCRAPE = "https://api.firecrawl.dev/v2/scrape"
SEARCH = "https://api.firecrawl.dev/v2/search"


def _without_llm(settings: Settings) -> Settings:
    return settings.model_copy(update={"anthropic_api_key": ""})


class TestServices:
    def test_clients_are_built_once(self, settings: Settings) -> None:
        services = Services(settings)
        assert services.firecrawl() is services.firecrawl()
        assert services.mux() is services.mux()

    @pytest.mark.parametrize(
        ("accessor", "message"),
        [
            ("firecrawl", "Firecrawl API key not configured"),
            ("llm", "Anthropic API key not configured"),
            ("runway", "RunwayML API secret not configured"),
            ("elevenlabs", "ElevenLabs API key not configured"),
            ("mux", "Mux token not configured"),
            ("resend", "Resend API key not configured"),
        ],
    )
    def test_missing_credentials(self, bare_settings: Settings, accessor: str, message: str):
        services = Services(bare_settings)
        with pytest.raises(ServiceNotConfiguredError, match=message):
            getattr(services, accessor)()

    def test_optional_llm(self, bare_settings: Settings) -> None:
        assert Services(bare_settings).optional_llm() is None

    @pytest.fixture()
    def host_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-host")
        monkeypatch.setenv("FIRECRAWL_API_KEY", "fc-host")

    def test_bare_settings_ignore_host_environment(
        self, host_credentials: None, bare_settings: Settings
    ) -> None:
        assert Settings(_env_file=None).anthropic_api_key == "sk-host"
        assert Services(bare_settings).optional_llm() is None
        with pytest.raises(ServiceNotConfiguredError):
            Services(bare_settings).firecrawl()

    def test_assembler_frame_size_from_ratio(self, settings: Settings) -> None:
        assert Services(settings).assembler().frame_size == (1280, 720)


class TestScrapeProductUrl:
    @pytest.mark.parametrize("url", ["not a url", "ftp://files.test/x", "https://"])
    def test_invalid_url(self, url: str, bare_settings: Settings) -> None:
        assert not is_valid_url(url)
        result = asyncio.run(scrape_product_url(url, services=Services(bare_settings)))
        assert result == Failure(error="Invalid URL format")

    def test_not_configured(self, bare_settings: Settings) -> None:
        result = asyncio.run(
            scrape_product_url("https://shop.test/p/1", services=Services(bare_settings))
        )
        assert result == Failure(error="Firecrawl API key not configured")

    @respx.mock
    def test_no_data(self, settings: Settings) -> None:
        respx.post(SCRAPE).mock(return_value=httpx.Response(200, json={"data": {}}))
        result = asyncio.run(
            scrape_product_url("https://shop.test/p/1", services=Services(settings))
        )
        assert result == Failure(error="Failed to scrape the page - no data returned")

    @respx.mock
    def test_scrape_without_research(self, settings: Settings) -> None:
        route = respx.post(SCRAPE).mock(
            return_value=httpx.Response(
                200,
                json={"data": {"json": {"title": "Cloud Runner", "brand": "Acme", "price": 129}}},
            )
        )
        result = asyncio.run(
            scrape_product_url("https://shop.test/p/1", services=Services(settings))
        )
        assert isinstance(result, ScrapeSuccess)
        assert result.data.title == "Cloud Runner"
        assert result.data.price == "129"
        assert result.research is None
        body = json.loads(route.calls.last.request.content)
        assert body["formats"][0]["type"] == "json"

    @respx.mock
    def test_loose_optional_fields_do_not_fail_scrape(self, settings: Settings) -> None:
        payload = {"title": "Cloud Runner", "rating": "4.6 out of 5 stars", "features": "Light"}
        respx.post(SCRAPE).mock(return_value=httpx.Response(200, json={"data": {"json": payload}}))
        result = asyncio.run(
            scrape_product_url("https://shop.test/p/1", services=Services(settings))
        )
        assert isinstance(result, ScrapeSuccess)
        assert result.data.rating == 4.6
        assert result.data.features == ["Light"]

    @respx.mock
    def test_scrape_with_research(self, settings: Settings) -> None:
        def scrape(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            if body["formats"] == ["markdown"]:
                return httpx.Response(200, json={"data": {"markdown": ""}})
            return httpx.Response(
                200, json={"data": {"json": {"title": "Cloud Runner", "brand": "Acme"}}}
            )

        respx.post(SCRAPE).mock(side_effect=scrape)
        search = respx.post(SEARCH).mock(
            return_value=httpx.Response(
                200, json={"data": {"web": [{"url": "https://reddit.com/a", "title": "Squeaks"}]}}
            )
        )
        result = asyncio.run(
            scrape_product_url(
                "https://shop.test/p/1", True, services=Services(_without_llm(settings))
            )
        )
        assert isinstance(result, ScrapeSuccess)
        assert search.call_count == 11
        assert result.research is not None
        # The single URL is found by every query; the first (pain point) query keeps it
        assert [p.issue for p in result.research.pain_points] == ["Squeaks"]
        assert result.research.competitors == []


class TestOtherWorkflows:
    @respx.mock
    def test_refresh_research(self, settings: Settings) -> None:
        respx.post(SEARCH).mock(return_value=httpx.Response(200, json={"data": []}))
        result = asyncio.run(
            refresh_product_research("Cloud Runner", "Acme", services=Services(settings))
        )
        assert isinstance(result, ResearchSuccess)
        assert result.research.is_empty

    def test_refresh_research_not_configured(self, bare_settings: Settings) -> None:
        result = asyncio.run(
            refresh_product_research("Cloud Runner", services=Services(bare_settings))
        )
        assert isinstance(result, Failure)

    def test_storyboards_without_llm(self, bare_settings: Settings) -> None:
        product = ProductInfo(title="Cloud Runner")
        output = asyncio.run(generate_storyboards(product, services=Services(bare_settings)))
        assert len(output.clips) == 4
        assert output.used_fallback

    def test_clip_media_not_configured(self, bare_settings: Settings) -> None:
        clip = VideoClip(label="Hook", prompt="p", voiceover="v")
        result = asyncio.run(generate_clip_media([clip] * 4, services=Services(bare_settings)))
        assert result == Failure(error="RunwayML API secret not configured")

    def test_influencers_not_configured(self, bare_settings: Settings) -> None:
        result = asyncio.run(
            find_influencers("Cloud Runner", "running shoes", services=Services(bare_settings))
        )
        assert result == Failure(error="Firecrawl API key not configured")

    def test_send_requires_email_before_config(self, bare_settings: Settings) -> None:
        influencer = Influencer(
            name="R",
            handle="@r",
            platform="tiktok",
            profile_url="https://t.test",
            relevance_score=5,
        )
        draft = EmailDraft(influencer=influencer, subject="s", body="b")
        result = asyncio.run(send_outreach_email(draft, services=Services(bare_settings)))
        assert result == Failure(error="No email address for @r")

        emailed = draft.model_copy(
            update={"influencer": influencer.model_copy(update={"email": "r@test.io"})}
        )
        result = asyncio.run(send_outreach_email(emailed, services=Services(bare_settings)))
        assert result == Failure(error="Email service not configured")


class TestCli:
    @pytest.fixture(autouse=True)
    def _keep_logging(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("adsmith.cli.configure_logging", lambda **kwargs: None)

    def test_invalid_url_exits_nonzero(self) -> None:
        result = CliRunner().invoke(cli, ["scrape", "nope"])
        assert result.exit_code == 1
        assert json.loads(result.stdout) == {"success": False, "error": "Invalid URL format"}

    def test_research_not_configured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FIRECRAWL_API_KEY", "")
        result = CliRunner().invoke(cli, ["research", "Cloud Runner"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "Firecrawl API key not configured"
