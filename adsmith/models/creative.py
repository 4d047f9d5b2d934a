"""Storyboard and rendered-media models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from adsmith.models.base import Failure, utcnow

SCENE_LABELS: tuple[str, ...] = ("Hook", "Problem", "Solution", "CTA")
SCENE_COUNT = len(SCENE_LABELS)


def new_clip_id() -> str:
    return uuid.uuid4().hex


class VideoClip(BaseModel):
    """One narrative beat of the ad: what to show and what to say."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_clip_id)
    label: str
    prompt: str
    voiceover: str


class CreativeOutput(BaseModel):
    """An ordered storyboard. Position in ``clips`` is the narrative order."""

    model_config = ConfigDict(frozen=True)

    clips: list[VideoClip]
    generated_at: datetime = Field(default_factory=utcnow)
    used_fallback: bool = False


class ClipMediaSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    mux_playback_id: str
    mux_asset_id: str
    scene_count: int
    audio_duration: float

    @property
    def playback_url(self) -> str:
        return f"https://stream.mux.com/{self.mux_playback_id}.m3u8"


ClipMediaResult = ClipMediaSuccess | Failure
