"""Tests for ffmpeg command construction and subprocess handling.

No binaries are executed: ``_run`` is stubbed for command checks and
``asyncio.create_subprocess_exec`` is replaced for process handling.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from adsmith.errors import MediaAssemblyError
from adsmith.media.assembly import MediaAssembler, build_concat_filter, parse_ratio


class RecordingAssembler(MediaAssembler):
    def __init__(self, stdout: str = "", **kwargs) -> None:
        super().__init__(**kwargs)
        self.stdout = stdout
        self.commands: list[list[str]] = []

    async def _run(self, cmd: list[str]) -> str:
        self.commands.append(cmd)
        return self.stdout


class FakeProcess:
    def __init__(
        self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", hang: bool = False
    ) -> None:
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.killed = False

    async def communicate(self) -> tuple[bytes, bytes]:
        if self._hang:
            await asyncio.sleep(10)
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True

    async def wait(self) -> int:
        return self.returncode


def _spawn(monkeypatch: pytest.MonkeyPatch, process: FakeProcess | Exception) -> list[tuple]:
    calls: list[tuple] = []

    async def create_subprocess_exec(*args, **kwargs):
        calls.append(args)
        if isinstance(process, Exception):
            raise process
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    return calls


def _option(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


class TestHelpers:
    def test_parse_ratio(self) -> None:
        assert parse_ratio("1280:720") == (1280, 720)
        assert parse_ratio("720:1280") == (720, 1280)

    @pytest.mark.parametrize("ratio", ["1280x720", "wide", ""])
    def test_parse_ratio_rejects_garbage(self, ratio: str) -> None:
        with pytest.raises(ValueError, match="Invalid video ratio"):
            parse_ratio(ratio)

    def test_concat_filter_normalises_every_input(self) -> None:
        graph = build_concat_filter(2, 1280, 720, fps=24)

        assert graph.startswith("[0:v:0]scale=1280:720:force_original_aspect_ratio=decrease,")
        assert "[1:v:0]scale=1280:720" in graph
        assert graph.count("pad=1280:720:(ow-iw)/2:(oh-ih)/2,setsar=1,fps=24,format=yuv420p") == 2
        assert graph.endswith("[v0][v1]concat=n=2:v=1:a=0[outv]")


class TestCommands:
    def test_concatenate_reencodes_in_order(self, tmp_path: Path) -> None:
        assembler = RecordingAssembler(frame_size=(720, 1280))
        inputs = [tmp_path / f"scene_{i:02d}.mp4" for i in range(4)]

        out = asyncio.run(assembler.concatenate(inputs, tmp_path / "scenes.mp4"))

        cmd = assembler.commands[0]
        assert out == tmp_path / "scenes.mp4"
        assert cmd[:2] == ["ffmpeg", "-y"]
        assert [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-i"] == [str(p) for p in inputs]
        assert _option(cmd, "-filter_complex") == build_concat_filter(4, 720, 1280)
        assert _option(cmd, "-map") == "[outv]"
        assert _option(cmd, "-c:v") == "libx264"
        assert _option(cmd, "-pix_fmt") == "yuv420p"
        assert cmd[-1] == str(tmp_path / "scenes.mp4")

    def test_concatenate_nothing(self, tmp_path: Path) -> None:
        with pytest.raises(MediaAssemblyError, match="No videos"):
            asyncio.run(RecordingAssembler().concatenate([], tmp_path / "out.mp4"))

    def test_mux_trims_to_duration(self, tmp_path: Path) -> None:
        assembler = RecordingAssembler(ffmpeg_path="/opt/ffmpeg")
        video, audio, out = tmp_path / "v.mp4", tmp_path / "a.mp3", tmp_path / "final.mp4"

        asyncio.run(assembler.mux_audio(video, audio, out, duration=14.2))

        cmd = assembler.commands[0]
        assert cmd[0] == "/opt/ffmpeg"
        assert [cmd[i + 1] for i, arg in enumerate(cmd) if arg == "-map"] == ["0:v:0", "1:a:0"]
        assert "-shortest" in cmd
        assert _option(cmd, "-t") == "14.200"
        assert _option(cmd, "-c:a") == "aac"
        assert _option(cmd, "-movflags") == "+faststart"
        assert cmd[-1] == str(out)

    def test_mux_without_duration(self, tmp_path: Path) -> None:
        assembler = RecordingAssembler()
        asyncio.run(assembler.mux_audio(tmp_path / "v", tmp_path / "a", tmp_path / "o"))
        assert "-t" not in assembler.commands[0]
        assert "-shortest" in assembler.commands[0]

    def test_probe_duration(self, tmp_path: Path) -> None:
        assembler = RecordingAssembler(stdout="14.213000\n", ffprobe_path="ffprobe")

        assert asyncio.run(assembler.probe_duration(tmp_path / "a.mp3")) == pytest.approx(14.213)
        cmd = assembler.commands[0]
        assert cmd[0] == "ffprobe"
        assert _option(cmd, "-show_entries") == "format=duration"

    @pytest.mark.parametrize("stdout", ["N/A\n", ""])
    def test_probe_duration_unreadable(self, tmp_path: Path, stdout: str) -> None:
        assembler = RecordingAssembler(stdout=stdout)
        with pytest.raises(MediaAssemblyError, match="Cannot read duration of a.mp3"):
            asyncio.run(assembler.probe_duration(tmp_path / "a.mp3"))


class TestSubprocess:
    def test_returns_stdout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = _spawn(monkeypatch, FakeProcess(stdout=b"4.0\n"))
        assert asyncio.run(MediaAssembler()._run(["ffprobe", "x"])) == "4.0\n"
        assert calls == [("ffprobe", "x")]

    def test_nonzero_exit(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _spawn(monkeypatch, FakeProcess(returncode=1, stderr=b"Invalid data found"))
        with pytest.raises(MediaAssemblyError, match="ffmpeg failed: Invalid data found"):
            asyncio.run(MediaAssembler()._run(["ffmpeg", "-i", "x"]))

    def test_timeout_kills_process(self, monkeypatch: pytest.MonkeyPatch) -> None:
        process = FakeProcess(hang=True)
        _spawn(monkeypatch, process)
        assembler = MediaAssembler(timeout=0.01)  # type: ignore[arg-type]

        with pytest.raises(MediaAssemblyError, match="timed out"):
            asyncio.run(assembler._run(["ffmpeg", "-i", "x"]))
        assert process.killed

    def test_missing_binary(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _spawn(monkeypatch, FileNotFoundError("No such file or directory: 'ffmpeg'"))
        with pytest.raises(MediaAssemblyError, match="Cannot start ffmpeg"):
            asyncio.run(MediaAssembler()._run(["ffmpeg", "-version"]))
