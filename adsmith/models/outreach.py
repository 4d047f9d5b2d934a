"""Influencer discovery and outreach models."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from adsmith.models.base import Failure, utcnow

InfluencerPlatform = Literal["instagram", "tiktok", "twitter", "youtube"]


def _new_id() -> str:
    return uuid.uuid4().hex


class Influencer(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    name: str
    handle: str
    platform: InfluencerPlatform
    followers: str | None = None
    niche: str | None = None
    bio: str | None = None
    profile_url: str
    email: str | None = None
    relevance_score: int = Field(ge=1, le=10)
    reasoning: str = ""


class InfluencerCandidate(BaseModel):
    """Structured-extraction schema for one influencer found in search results."""

    name: str = Field(description="Creator's display name")
    handle: str = Field(description="Handle including the @ where applicable")
    platform: InfluencerPlatform
    followers: str | None = Field(default=None, description="Follower count, e.g. '120K'")
    niche: str | None = Field(default=None, description="Content niche")
    bio: str | None = Field(default=None, description="Short bio from the profile")
    profile_url: str = Field(description="Full URL of the creator's profile or channel")
    email: str | None = Field(default=None, description="Public business email if listed")
    relevance_score: int = Field(ge=1, le=10, description="Fit for the product, 1-10")
    reasoning: str = Field(description="One sentence on why this creator fits")


class InfluencerExtraction(BaseModel):
    influencers: list[InfluencerCandidate] = Field(default_factory=list)
    search_summary: str = ""


class InfluencerSearchSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    influencers: list[Influencer]
    search_summary: str = ""


InfluencerSearchResult = InfluencerSearchSuccess | Failure


class EmailStatus(StrEnum):
    DRAFT = "draft"
    SENT = "sent"
    FAILED = "failed"


class EmailContent(BaseModel):
    """Structured output for one personalised outreach email."""

    subject: str = Field(description="Short, specific subject line")
    body: str = Field(description="Plain-text email body, 120-180 words, no signature block")


class EmailDraft(BaseModel):
    """An outreach email. Status moves draft -> sent or draft -> failed, never back."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    influencer: Influencer
    subject: str
    body: str
    status: EmailStatus = EmailStatus.DRAFT
    sent_at: datetime | None = None

    def mark_sent(self, at: datetime | None = None) -> EmailDraft:
        self._require_draft()
        return self.model_copy(update={"status": EmailStatus.SENT, "sent_at": at or utcnow()})

    def mark_failed(self) -> EmailDraft:
        self._require_draft()
        return self.model_copy(update={"status": EmailStatus.FAILED})

    def _require_draft(self) -> None:
        if self.status is not EmailStatus.DRAFT:
            raise ValueError(f"Email draft {self.id} is already {self.status.value}")


class EmailSent(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    message_id: str


SendResult = EmailSent | Failure


def apply_send_result(draft: EmailDraft, result: SendResult) -> EmailDraft:
    """Return the draft with the terminal status implied by a send attempt."""
    if result.success:
        return draft.mark_sent()
    return draft.mark_failed()
