"""Application configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Collaborator credentials (each checked at first use)
    firecrawl_api_key: str = ""
    anthropic_api_key: str = ""
    runwayml_api_secret: str = ""
    elevenlabs_api_key: str = ""
    mux_token_id: str = ""
    mux_token_secret: str = ""
    resend_api_key: str = ""
    email_from: str = ""

    # Research settings
    search_limit: int = 8
    scrape_per_intent: int = 6
    scrape_timeout_ms: int = 15000
    scrape_content_chars: int = 3000
    max_pain_points: int = 6
    max_competitors: int = 6
    max_competitor_ads: int = 8
    brand_exclusion_threshold: int = 3

    # LLM settings
    llm_model: str = "claude-sonnet-4-5-20250929"
    llm_max_tokens: int = 4096
    llm_temperature: float = 0.7

    # Video generation
    video_model: str = "veo3.1_fast"
    video_ratio: str = "1280:720"
    scene_duration: int = 4
    video_poll_interval: float = 5.0
    video_max_polls: int = 120

    # Speech synthesis
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    voice_model: str = "eleven_monolingual_v1"
    voice_stability: float = 0.5
    voice_similarity_boost: float = 0.5

    # Video hosting
    mux_poll_interval: float = 2.0
    mux_max_polls: int = 60

    # Influencer discovery
    influencer_search_limit: int = 5
    influencer_pool_size: int = 20
    influencer_top_k: int = 10

    # Local media assembly
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    ffmpeg_timeout: int = 300
    scratch_root: Path | None = None

    # Network
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def mux_configured(self) -> bool:
        return bool(self.mux_token_id and self.mux_token_secret)
