"""Client for the ElevenLabs text-to-speech API.

Uses the with-timestamps endpoint so the caller gets character-level
alignment alongside the audio, which gives the voiceover duration without
probing the file.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

import httpx
import structlog
from typing_extensions import TypedDict

from adsmith.clients._http import request_json
from adsmith.errors import CollaboratorError, ServiceNotConfiguredError

logger = structlog.get_logger()

SERVICE = "elevenlabs"


class Alignment(TypedDict):
    characters: list[str]
    character_start_times_seconds: list[float]
    character_end_times_seconds: list[float]


@dataclass(frozen=True, slots=True)
class SpeechResult:
    audio: bytes
    alignment: Alignment | None = None

    @property
    def duration(self) -> float | None:
        """Spoken duration in seconds, if alignment was returned."""
        if not self.alignment:
            return None
        ends = self.alignment.get("character_end_times_seconds") or []
        return float(ends[-1]) if ends else None


def _parse_alignment(raw: object) -> Alignment | None:
    if not isinstance(raw, dict):
        return None
    chars = raw.get("characters")
    starts = raw.get("character_start_times_seconds")
    ends = raw.get("character_end_times_seconds")
    if not (isinstance(chars, list) and isinstance(starts, list) and isinstance(ends, list)):
        return None
    return {
        "characters": [str(c) for c in chars],
        "character_start_times_seconds": [float(s) for s in starts],
        "character_end_times_seconds": [float(e) for e in ends],
    }


class ElevenLabsClient:
    """ElevenLabs API client."""

    def __init__(
        self,
        api_key: str,
        *,
        voice_id: str = "21m00Tcm4TlvDq8ikWAM",
        model_id: str = "eleven_monolingual_v1",
        stability: float = 0.5,
        similarity_boost: float = 0.5,
        timeout: float = 60.0,
    ) -> None:
        api_key = api_key.strip()
        if not api_key:
            raise ServiceNotConfiguredError("ElevenLabs API key")
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.stability = stability
        self.similarity_boost = similarity_boost
        self.timeout = timeout
        self.base_url = "https://api.elevenlabs.io/v1"

    async def synthesize(self, text: str) -> SpeechResult:
        """Synthesize *text* with the configured voice.

        Returns:
            SpeechResult with MP3 bytes and character alignment when available.
        """
        logger.info("Generating voiceover", chars=len(text), preview=text[:50])
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"xi-api-key": self.api_key},
        ) as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/text-to-speech/{self.voice_id}/with-timestamps",
                service=SERVICE,
                operation="synthesize",
                json={
                    "text": text,
                    "model_id": self.model_id,
                    "voice_settings": {
                        "stability": self.stability,
                        "similarity_boost": self.similarity_boost,
                    },
                },
            )
        encoded = data.get("audio_base64")
        if not encoded:
            raise CollaboratorError(SERVICE, "synthesize returned no audio")
        try:
            audio = base64.b64decode(encoded)
        except (binascii.Error, TypeError) as exc:
            raise CollaboratorError(SERVICE, f"audio payload is not base64: {exc}") from exc
        return SpeechResult(audio=audio, alignment=_parse_alignment(data.get("alignment")))
