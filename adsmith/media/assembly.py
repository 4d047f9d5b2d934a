"""Local media assembly with ffmpeg.

Concatenates scene videos (re-encoding every input to one resolution,
frame rate and pixel format so heterogeneous sources concatenate cleanly)
and muxes a voiceover track onto the result.

Commands run through ``asyncio.create_subprocess_exec`` with a hard
timeout; a non-zero exit raises MediaAssemblyError.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog

from adsmith.errors import MediaAssemblyError

logger = structlog.get_logger()


@contextmanager
def scratch_directory(root: Path | None = None) -> Iterator[Path]:
    """Create a uniquely named directory and delete it on every exit path.

    A failed deletion is logged and never replaces the body's own result
    or exception.
    """
    if root is not None:
        root.mkdir(parents=True, exist_ok=True)
    path = Path(tempfile.mkdtemp(prefix="adsmith-media-", dir=root))
    logger.debug("Scratch directory created", path=str(path))
    try:
        yield path
    finally:
        try:
            shutil.rmtree(path)
        except OSError as exc:
            logger.error("Scratch directory cleanup failed", path=str(path), error=str(exc))
        else:
            logger.debug("Scratch directory removed", path=str(path))


def parse_ratio(ratio: str) -> tuple[int, int]:
    """``"1280:720"`` -> ``(1280, 720)``."""
    width, _, height = ratio.partition(":")
    try:
        return int(width), int(height)
    except ValueError as exc:
        raise ValueError(f"Invalid video ratio: {ratio!r}") from exc


def build_concat_filter(count: int, width: int, height: int, fps: int = 30) -> str:
    """filter_complex that normalises *count* video inputs and concatenates them in order."""
    normalise = "".join(
        f"[{i}:v:0]scale={width}:{height}:force_original_aspect_ratio=decrease,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,setsar=1,fps={fps},format=yuv420p[v{i}];"
        for i in range(count)
    )
    labels = "".join(f"[v{i}]" for i in range(count))
    return f"{normalise}{labels}concat=n={count}:v=1:a=0[outv]"


class MediaAssembler:
    """Thin async wrapper over the ffmpeg and ffprobe binaries."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        timeout: int = 300,
        frame_size: tuple[int, int] = (1280, 720),
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout
        self.frame_size = frame_size

    @property
    def available(self) -> bool:
        return bool(shutil.which(self.ffmpeg_path) and shutil.which(self.ffprobe_path))

    async def _run(self, cmd: list[str]) -> str:
        logger.debug("Running ffmpeg", cmd=" ".join(cmd[:6]))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise MediaAssemblyError(f"Cannot start {cmd[0]}: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except TimeoutError as exc:
            process.kill()
            await process.wait()
            raise MediaAssemblyError(f"{cmd[0]} timed out after {self.timeout}s") from exc

        if process.returncode != 0:
            message = stderr.decode(errors="replace") if stderr else "unknown error"
            logger.error("ffmpeg failed", returncode=process.returncode, stderr=message[-500:])
            raise MediaAssemblyError(f"{cmd[0]} failed: {message[-500:]}")
        return stdout.decode(errors="replace")

    async def probe_duration(self, path: Path) -> float:
        """Container duration in seconds."""
        out = await self._run(
            [
                self.ffprobe_path,
                "-v", "quiet",
                "-show_entries", "format=duration",
                "-of", "csv=p=0",
                str(path),
            ]
        )  # fmt: skip
        try:
            return float(out.strip())
        except ValueError as exc:
            raise MediaAssemblyError(f"Cannot read duration of {path.name}") from exc

    async def concatenate(self, inputs: list[Path], output: Path) -> Path:
        """Concatenate video streams in list order into *output* (H.264, no audio)."""
        if not inputs:
            raise MediaAssemblyError("No videos to concatenate")
        width, height = self.frame_size
        cmd = [self.ffmpeg_path, "-y"]
        for path in inputs:
            cmd.extend(["-i", str(path)])
        cmd.extend(
            [
                "-filter_complex", build_concat_filter(len(inputs), width, height),
                "-map", "[outv]",
                "-c:v", "libx264",
                "-preset", "medium",
                "-crf", "23",
                "-pix_fmt", "yuv420p",
                str(output),
            ]
        )  # fmt: skip
        await self._run(cmd)
        logger.info("Scenes concatenated", scenes=len(inputs), output=output.name)
        return output

    async def mux_audio(
        self, video: Path, audio: Path, output: Path, duration: float | None = None
    ) -> Path:
        """Replace the audio of *video* with *audio*, ending with the shorter stream.

        The video stream is re-encoded so the output is a uniform H.264/AAC mp4
        whether or not *video* came from :meth:`concatenate`.
        """
        cmd = [
            self.ffmpeg_path, "-y",
            "-i", str(video),
            "-i", str(audio),
            "-map", "0:v:0",
            "-map", "1:a:0",
            "-c:v", "libx264",
            "-pix_fmt", "yuv420p",
            "-c:a", "aac",
            "-b:a", "192k",
            "-shortest",
        ]  # fmt: skip
        if duration is not None:
            cmd.extend(["-t", f"{duration:.3f}"])
        cmd.extend(["-movflags", "+faststart", str(output)])
        await self._run(cmd)
        logger.info("Voiceover muxed", output=output.name, duration=duration)
        return output
