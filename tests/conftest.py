"""Shared test fixtures."""

from __future__ import annotations

import pytest
from pydantic_ai import models

from adsmith.config import Settings
from adsmith.models.product import ProductInfo
from adsmith.models.research import (
    CompetitorProduct,
    MarketResearch,
    PainPoint,
    Sentiment,
)

# Safety net: block all real LLM API calls during tests.
# TestModel and FunctionModel are exempt from this check.
models.ALLOW_MODEL_REQUESTS = False


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        firecrawl_api_key="fc-test",
        anthropic_api_key="test-key",
        runwayml_api_secret="rw-test",
        elevenlabs_api_key="el-test",
        mux_token_id="mux-id",
        mux_token_secret="mux-secret",
        resend_api_key="re-test",
        email_from="team@adsmith.test",
        video_poll_interval=0.0,
        mux_poll_interval=0.0,
        scratch_root=tmp_path,
        log_level="DEBUG",
        log_format="console",
        _env_file=None,
    )


@pytest.fixture()
def bare_settings() -> Settings:
    """Settings with no collaborator credentials, whatever the host environment holds."""
    return Settings(
        firecrawl_api_key="",
        anthropic_api_key="",
        runwayml_api_secret="",
        elevenlabs_api_key="",
        mux_token_id="",
        mux_token_secret="",
        resend_api_key="",
        email_from="",
        _env_file=None,
    )


@pytest.fixture()
def product() -> ProductInfo:
    return ProductInfo(title="Cloud Runner", brand="Acme", category="running shoes")


@pytest.fixture()
def research() -> MarketResearch:
    return MarketResearch(
        pain_points=[
            PainPoint(
                issue="Sole falls apart after two months",
                frequency="frequently mentioned",
                sentiment=Sentiment.CRITICAL,
                source="reddit.com",
            )
        ],
        competitors=[
            CompetitorProduct(product_name="Pegasus 41", brand="Nike", key_difference="Cushioning"),
            CompetitorProduct(product_name="Ghost 16", brand="Brooks", key_difference="Fit"),
        ],
    )

