"""Process-wide collaborator wiring.

``Services`` is built once from ``Settings`` and hands out one client per
collaborator, constructed on first use. A missing credential raises
``ServiceNotConfiguredError`` from the accessor, so an operation that
never touches a collaborator never needs its key.
"""

from __future__ import annotations

from adsmith.clients import (
    ElevenLabsClient,
    FirecrawlClient,
    MuxClient,
    ResendClient,
    RunwayClient,
)
from adsmith.config import Settings
from adsmith.llm import LLMClient
from adsmith.media import MediaAssembler, ScenePipeline, parse_ratio
from adsmith.outreach import InfluencerScout, OutreachWriter
from adsmith.research import ResearchOrchestrator
from adsmith.storyboard import StoryboardGenerator


class Services:
    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._firecrawl: FirecrawlClient | None = None
        self._llm: LLMClient | None = None
        self._runway: RunwayClient | None = None
        self._elevenlabs: ElevenLabsClient | None = None
        self._mux: MuxClient | None = None
        self._resend: ResendClient | None = None
        self._assembler: MediaAssembler | None = None

    # --- Collaborator clients ---

    def firecrawl(self) -> FirecrawlClient:
        if self._firecrawl is None:
            self._firecrawl = FirecrawlClient(
                self.settings.firecrawl_api_key, timeout=self.settings.http_timeout
            )
        return self._firecrawl

    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient(self.settings)
        return self._llm

    def optional_llm(self) -> LLMClient | None:
        """The completion client, or None when no key is configured."""
        if not self.settings.anthropic_api_key:
            return None
        return self.llm()

    def runway(self) -> RunwayClient:
        if self._runway is None:
            s = self.settings
            self._runway = RunwayClient(
                s.runwayml_api_secret,
                model=s.video_model,
                timeout=s.http_timeout,
                poll_interval=s.video_poll_interval,
                max_polls=s.video_max_polls,
            )
        return self._runway

    def elevenlabs(self) -> ElevenLabsClient:
        if self._elevenlabs is None:
            s = self.settings
            self._elevenlabs = ElevenLabsClient(
                s.elevenlabs_api_key,
                voice_id=s.voice_id,
                model_id=s.voice_model,
                stability=s.voice_stability,
                similarity_boost=s.voice_similarity_boost,
                timeout=max(s.http_timeout, 60.0),
            )
        return self._elevenlabs

    def mux(self) -> MuxClient:
        if self._mux is None:
            s = self.settings
            self._mux = MuxClient(
                s.mux_token_id,
                s.mux_token_secret,
                timeout=s.http_timeout,
                poll_interval=s.mux_poll_interval,
                max_polls=s.mux_max_polls,
            )
        return self._mux

    def resend(self) -> ResendClient:
        if self._resend is None:
            self._resend = ResendClient(
                self.settings.resend_api_key, timeout=self.settings.http_timeout
            )
        return self._resend

    def assembler(self) -> MediaAssembler:
        if self._assembler is None:
            s = self.settings
            self._assembler = MediaAssembler(
                ffmpeg_path=s.ffmpeg_path,
                ffprobe_path=s.ffprobe_path,
                timeout=s.ffmpeg_timeout,
                frame_size=parse_ratio(s.video_ratio),
            )
        return self._assembler

    # --- Components ---

    def research(self, *, with_fallback: bool = True) -> ResearchOrchestrator:
        llm = self.optional_llm() if with_fallback else None
        return ResearchOrchestrator(self.firecrawl(), self.settings, llm=llm)

    def storyboard(self) -> StoryboardGenerator:
        return StoryboardGenerator(llm=self.optional_llm())

    def scene_pipeline(self) -> ScenePipeline:
        return ScenePipeline(
            video=self.runway(),
            speech=self.elevenlabs(),
            host=self.mux(),
            assembler=self.assembler(),
            settings=self.settings,
        )

    def influencer_scout(self) -> InfluencerScout:
        return InfluencerScout(self.firecrawl(), self.llm(), self.settings)

    def outreach_writer(self) -> OutreachWriter:
        return OutreachWriter(self.llm())
