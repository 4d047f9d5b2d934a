"""Influencer discovery and outreach email drafting/sending."""

from __future__ import annotations

import asyncio
import html
from typing import TYPE_CHECKING

import structlog

from adsmith.metrics import stage_duration_seconds
from adsmith.models.base import Failure
from adsmith.models.outreach import (
    EmailContent,
    EmailDraft,
    EmailSent,
    Influencer,
    InfluencerExtraction,
    InfluencerSearchResult,
    InfluencerSearchSuccess,
    SendResult,
)

if TYPE_CHECKING:
    from adsmith.clients.firecrawl import FirecrawlClient, FirecrawlSearchItem
    from adsmith.clients.resend import ResendClient
    from adsmith.config import Settings
    from adsmith.llm import LLMClient
    from adsmith.models.product import ProductInfo

logger = structlog.get_logger()

EXTRACTION_SYSTEM = (
    "You extract influencer profiles from web search results. Only include real "
    "individual creators (not brands, retailers, or listicles) whose handle or profile "
    "URL appears in the results. Score relevance to the product from 1 to 10."
)

EMAIL_SYSTEM = (
    "You write short, warm, personalised influencer outreach emails for a brand. "
    "Reference the creator's content specifically, explain why the product fits their "
    "audience, propose a paid collaboration, and end with a clear question. No emojis, "
    "no placeholders in square brackets."
)


def build_influencer_queries(
    product_name: str, category: str, brand: str | None = None
) -> list[str]:
    """Seven platform-scoped searches: 2 Instagram, 2 TikTok, 1 X, 2 YouTube."""
    subject = brand or product_name
    return [
        f"{category} influencer instagram {subject} review",
        f"site:instagram.com {category} creator \"brand partnership\" OR collab",
        f"site:tiktok.com {category} creator review",
        f"{category} tiktok influencer \"{subject}\" OR \"{category} review\"",
        f"site:x.com OR site:twitter.com {category} expert reviewer",
        f"site:youtube.com {category} review channel \"{product_name}\"",
        f"best {category} youtube reviewers 2025",
    ]


def render_email_html(body: str, video_url: str | None = None) -> str:
    """Plain-text body -> simple HTML paragraphs, with an optional video link."""
    paragraphs = [p.strip() for p in body.split("\n\n") if p.strip()]
    parts = [f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs]
    if video_url:
        safe_url = html.escape(video_url, quote=True)
        parts.append(f'<p>Here\'s the ad we made: <a href="{safe_url}">{safe_url}</a></p>')
    return "\n".join(parts)


class InfluencerScout:
    """Finds and ranks creators who could promote a product."""

    def __init__(self, firecrawl: FirecrawlClient, llm: LLMClient, settings: Settings) -> None:
        self.firecrawl = firecrawl
        self.llm = llm
        self.settings = settings

    async def _search(self, query: str) -> list[FirecrawlSearchItem]:
        try:
            return await self.firecrawl.search(query, limit=self.settings.influencer_search_limit)
        except Exception as exc:
            logger.warning("Influencer search failed", query=query[:80], error=str(exc))
            return []

    async def _candidate_pool(
        self, product_name: str, category: str, brand: str | None
    ) -> list[FirecrawlSearchItem]:
        queries = build_influencer_queries(product_name, category, brand)
        batches = await asyncio.gather(*(self._search(q) for q in queries))
        seen: set[str] = set()
        pool: list[FirecrawlSearchItem] = []
        for item in (item for batch in batches for item in batch):
            if item["url"] in seen:
                continue
            seen.add(item["url"])
            pool.append(item)
        return pool[: self.settings.influencer_pool_size]

    async def find_influencers(
        self, product_name: str, category: str, brand: str | None = None
    ) -> InfluencerSearchResult:
        with stage_duration_seconds.labels(stage="influencers").time():
            pool = await self._candidate_pool(product_name, category, brand)
            if not pool:
                return Failure(error="No influencer candidates found")

            listing = "\n".join(
                f"{i + 1}. {item['title']} ({item['url']})\n   {item['description']}"
                for i, item in enumerate(pool)
            )
            prompt = (
                f"Product: {product_name}\nCategory: {category}\n"
                f"{f'Brand: {brand}' if brand else ''}\n\n"
                f"Search results:\n{listing}\n\n"
                "Extract the influencers and write a one-sentence search summary."
            )
            try:
                extraction = await self.llm.generate(
                    prompt, InfluencerExtraction, system=EXTRACTION_SYSTEM, temperature=0.2
                )
            except Exception as exc:
                logger.warning("Influencer extraction failed", error=str(exc))
                return Failure(error=f"Influencer extraction failed: {exc}")

        influencers = rank_influencers(
            [Influencer(**c.model_dump()) for c in extraction.influencers],
            self.settings.influencer_top_k,
        )
        logger.info("Influencers found", candidates=len(pool), influencers=len(influencers))
        return InfluencerSearchSuccess(
            influencers=influencers, search_summary=extraction.search_summary
        )


def rank_influencers(influencers: list[Influencer], top_k: int = 10) -> list[Influencer]:
    """Highest relevance first (stable for ties), truncated to *top_k*."""
    return sorted(influencers, key=lambda inf: inf.relevance_score, reverse=True)[:top_k]


class OutreachWriter:
    """Drafts personalised emails one influencer at a time."""

    def __init__(self, llm: LLMClient) -> None:
        self.llm = llm

    def _prompt(self, influencer: Influencer, product: ProductInfo, video_url: str | None) -> str:
        details = "\n".join(
            f"{label}: {value}"
            for label, value in (
                ("Name", influencer.name),
                ("Handle", influencer.handle),
                ("Platform", influencer.platform),
                ("Followers", influencer.followers),
                ("Niche", influencer.niche),
                ("Bio", influencer.bio),
                ("Why they fit", influencer.reasoning),
            )
            if value
        )
        features = "; ".join(product.features[:3]) or product.description[:200]
        video_line = f"\nWe have a finished ad video to share: {video_url}" if video_url else ""
        return (
            f"Creator:\n{details}\n\n"
            f"Product: {product.display_name}\n"
            f"Brand: {product.brand or 'n/a'}\n"
            f"Category: {product.category or 'n/a'}\n"
            f"Highlights: {features}{video_line}\n\n"
            "Write the subject and body."
        )

    async def generate_outreach_emails(
        self,
        influencers: list[Influencer],
        product: ProductInfo,
        video_url: str | None = None,
    ) -> list[EmailDraft]:
        """One draft per influencer, generated sequentially.

        A failed generation skips that influencer, so the result can be
        shorter than the input.
        """
        drafts: list[EmailDraft] = []
        for influencer in influencers:
            try:
                content = await self.llm.generate(
                    self._prompt(influencer, product, video_url),
                    EmailContent,
                    system=EMAIL_SYSTEM,
                    temperature=0.7,
                    max_tokens=600,
                )
            except Exception as exc:
                logger.warning(
                    "Outreach email generation failed",
                    influencer=influencer.handle,
                    error=str(exc),
                )
                continue
            drafts.append(
                EmailDraft(influencer=influencer, subject=content.subject, body=content.body)
            )
        logger.info("Outreach drafts ready", requested=len(influencers), drafted=len(drafts))
        return drafts


async def send_outreach_email(
    draft: EmailDraft,
    sender: str,
    mailer: ResendClient | None,
    video_url: str | None = None,
) -> SendResult:
    """Send one draft. Persisting the sent/failed status is up to the caller.

    The influencer must have an email address; this is checked before the
    mailer is touched.
    """
    recipient = draft.influencer.email
    if not recipient:
        return Failure(error=f"No email address for {draft.influencer.handle}")
    if mailer is None:
        return Failure(error="Email service not configured")
    if not sender:
        return Failure(error="Sender address not configured")

    try:
        message_id = await mailer.send(
            sender=sender,
            to=recipient,
            subject=draft.subject,
            html=render_email_html(draft.body, video_url),
        )
    except Exception as exc:
        logger.warning("Outreach email failed", to=recipient, error=str(exc))
        return Failure(error=str(exc))
    return EmailSent(message_id=message_id)
