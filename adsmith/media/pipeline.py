"""Scene media pipeline: storyboard clips -> one hosted video with voiceover.

Stages:

1. Render every scene on the text-to-video service while, concurrently,
   one voiceover is synthesised from all scene lines in scene order.
2. All-or-nothing: any failed scene or a failed voiceover fails the run.
3. Download into a private scratch directory, concatenate scenes in index
   order, and mux the voiceover, ending at the shorter of the two tracks.
4. Direct-upload to the video host and wait for a playback id.
5. The scratch directory is removed whether stages 3-4 succeed or not.

Collaborator failures never escape: they come back as ``Failure`` with a
prefix naming the stage ("Video:", "Audio:", "Combine:", "Upload:").
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog

from adsmith.errors import CollaboratorError
from adsmith.media.assembly import scratch_directory
from adsmith.metrics import collaborator_calls_total, stage_duration_seconds
from adsmith.models.base import Failure
from adsmith.models.creative import SCENE_COUNT, ClipMediaResult, ClipMediaSuccess

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from adsmith.clients.elevenlabs import ElevenLabsClient, SpeechResult
    from adsmith.clients.mux import MuxClient
    from adsmith.clients.runway import RunwayClient
    from adsmith.config import Settings
    from adsmith.media.assembly import MediaAssembler
    from adsmith.models.creative import VideoClip

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class RenderedScene:
    index: int
    video_url: str


def merged_voiceover(clips: Sequence[VideoClip]) -> str:
    """All voiceover lines joined by spaces, in scene order."""
    return " ".join(clip.voiceover.strip() for clip in clips if clip.voiceover.strip())


def describe_error(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ScenePipeline:
    """Renders, assembles and publishes an ad from its storyboard clips."""

    def __init__(
        self,
        *,
        video: RunwayClient,
        speech: ElevenLabsClient,
        host: MuxClient,
        assembler: MediaAssembler,
        settings: Settings,
    ) -> None:
        self.video = video
        self.speech = speech
        self.host = host
        self.assembler = assembler
        self.settings = settings

    # ------------------------------------------------------------------
    # Stage 1-2: render
    # ------------------------------------------------------------------

    async def _render_scene(self, index: int, clip: VideoClip) -> RenderedScene:
        logger.info("Rendering scene", scene=index, label=clip.label)
        url = await self.video.generate_video(
            clip.prompt,
            ratio=self.settings.video_ratio,
            duration=self.settings.scene_duration,
        )
        logger.info("Scene rendered", scene=index)
        return RenderedScene(index=index, video_url=url)

    async def _render(
        self, clips: Sequence[VideoClip]
    ) -> tuple[list[RenderedScene], SpeechResult] | Failure:
        script = merged_voiceover(clips)
        with stage_duration_seconds.labels(stage="render").time():
            outcomes = await asyncio.gather(
                *(self._render_scene(i, clip) for i, clip in enumerate(clips)),
                self.speech.synthesize(script),
                return_exceptions=True,
            )

        *scene_outcomes, speech_outcome = outcomes
        failed = [
            f"scene {i} failed: {describe_error(outcome)}"
            for i, outcome in enumerate(scene_outcomes)
            if isinstance(outcome, BaseException)
        ]
        if failed:
            logger.warning("Scene rendering failed", failures=failed)
            return Failure(error=f"Video: {'; '.join(failed)}")
        if isinstance(speech_outcome, BaseException):
            logger.warning("Voiceover synthesis failed", error=describe_error(speech_outcome))
            return Failure(error=f"Audio: {describe_error(speech_outcome)}")

        scenes = sorted(
            (s for s in scene_outcomes if isinstance(s, RenderedScene)),
            key=lambda s: s.index,
        )
        return scenes, speech_outcome  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Stage 3: assemble
    # ------------------------------------------------------------------

    async def _download(self, url: str, dest: Path) -> Path:
        timeout = self.settings.http_timeout * 4
        try:
            async with (
                httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client,
                client.stream("GET", url) as resp,
            ):
                resp.raise_for_status()
                with dest.open("wb") as fh:
                    async for chunk in resp.aiter_bytes():
                        fh.write(chunk)
        except httpx.HTTPError as exc:
            collaborator_calls_total.labels(
                service="runway", operation="download", status="error"
            ).inc()
            raise CollaboratorError("runway", f"download of {url} failed: {exc}") from exc
        collaborator_calls_total.labels(service="runway", operation="download", status="ok").inc()
        return dest

    async def _assemble(
        self, workdir: Path, scenes: list[RenderedScene], speech: SpeechResult
    ) -> tuple[Path, float]:
        """Produce the final mp4 in *workdir*; returns it with the voiceover duration."""
        # The group cancels and awaits sibling downloads before the scratch
        # directory can be removed
        try:
            async with asyncio.TaskGroup() as group:
                downloads = [
                    group.create_task(
                        self._download(s.video_url, workdir / f"scene_{s.index:02d}.mp4")
                    )
                    for s in scenes
                ]
        except ExceptionGroup as exc_group:
            raise exc_group.exceptions[0] from None
        scene_paths = [task.result() for task in downloads]

        audio_path = workdir / "voiceover.mp3"
        audio_path.write_bytes(speech.audio)

        if len(scene_paths) > 1:
            video_path = await self.assembler.concatenate(list(scene_paths), workdir / "scenes.mp4")
        else:
            video_path = scene_paths[0]

        audio_duration = speech.duration
        if audio_duration is None:
            audio_duration = await self.assembler.probe_duration(audio_path)
        video_duration = await self.assembler.probe_duration(video_path)

        output = workdir / "final.mp4"
        await self.assembler.mux_audio(
            video_path, audio_path, output, duration=min(video_duration, audio_duration)
        )
        return output, audio_duration

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def _produce(self, clips: Sequence[VideoClip]) -> ClipMediaResult:
        rendered = await self._render(clips)
        if isinstance(rendered, Failure):
            return rendered
        scenes, speech = rendered

        with scratch_directory(self.settings.scratch_root) as workdir:
            try:
                with stage_duration_seconds.labels(stage="assemble").time():
                    final_path, audio_duration = await self._assemble(workdir, scenes, speech)
            except Exception as exc:
                logger.warning("Media combination failed", error=describe_error(exc))
                return Failure(error=f"Combine: {describe_error(exc)}")

            try:
                with stage_duration_seconds.labels(stage="upload").time():
                    asset = await self.host.publish(final_path)
            except Exception as exc:
                logger.warning("Upload failed", error=describe_error(exc))
                return Failure(error=f"Upload: {describe_error(exc)}")

        logger.info(
            "Ad video published",
            playback_id=asset.playback_id,
            asset_id=asset.asset_id,
            scenes=len(scenes),
        )
        return ClipMediaSuccess(
            mux_playback_id=asset.playback_id,
            mux_asset_id=asset.asset_id,
            scene_count=len(scenes),
            audio_duration=round(audio_duration, 3),
        )

    async def generate_single_scene(self, clip: VideoClip) -> ClipMediaResult:
        """Degraded mode: one scene, its own voiceover line, no concatenation."""
        return await self._produce([clip])

    async def generate_clip_media(self, clips: Sequence[VideoClip]) -> ClipMediaResult:
        """Render the storyboard into one hosted video.

        Four or more clips produce the full four-scene ad (extra clips are
        ignored). Fewer clips fall back to single-scene mode using the
        first clip; no clips at all is a precondition failure.
        """
        if not clips:
            return Failure(error="No clips supplied for media generation")
        if len(clips) < SCENE_COUNT:
            logger.info("Fewer than four clips, using single-scene mode", clips=len(clips))
            return await self.generate_single_scene(clips[0])
        return await self._produce(list(clips[:SCENE_COUNT]))
