"""Four-scene ad storyboard generation.

The completion service writes a Hook -> Problem -> Solution -> CTA script.
Anything that goes wrong on that path (service error, non-JSON output,
wrong shape) falls through to a template script built from the product
and research data, so generation always yields exactly four clips.
"""

from __future__ import annotations

import json
import re
from typing import TYPE_CHECKING, Any

import structlog

from adsmith.metrics import stage_duration_seconds
from adsmith.models.creative import SCENE_COUNT, SCENE_LABELS, CreativeOutput, VideoClip

if TYPE_CHECKING:
    from adsmith.llm import LLMClient
    from adsmith.models.product import ProductInfo
    from adsmith.models.research import MarketResearch

logger = structlog.get_logger()

SYSTEM_PROMPT = f"""You are a short-form video ad creator. Write a {SCENE_COUNT}-scene video ad.

The scenes are, in order: {", ".join(SCENE_LABELS)}.

Each scene needs:
1. label: the scene name from the list above
2. prompt: direction for a 4-second AI-generated video shot (what to show, camera, mood)
3. voiceover: the exact words spoken over the scene, 8-12 words

The {SCENE_COUNT} voiceover lines are read back to back as one continuous script, so they
must flow naturally into each other.

Return ONLY a JSON array of {SCENE_COUNT} objects with keys label, prompt, voiceover."""

_CODE_FENCE = re.compile(r"```(?:json)?\s*\n?")


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text).strip()


def _shorten(text: str, limit: int) -> str:
    """Trim to *limit* chars on a word boundary, without trailing punctuation."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text.rstrip(".!? ")
    cut = text[:limit].rsplit(" ", 1)[0]
    return cut.rstrip(",;:.!? ")


def build_user_prompt(product: ProductInfo, research: MarketResearch) -> str:
    name = product.display_name
    pain_points = [p.issue for p in research.pain_points[:3]]
    competitors = [c.product_name or c.brand for c in research.competitors[:2]]
    features = product.features[:3] or ([product.description] if product.description else [])

    def bullets(items: list[str], default: str) -> str:
        return "\n".join(f"- {item}" for item in items) or f"- {default}"

    brand_line = f"Brand: {product.brand}\n" if product.brand else ""
    return (
        f"Product: {name}\n{brand_line}\n"
        f"Pain points users have:\n{bullets(pain_points, 'General frustration with alternatives')}\n\n"
        f"Competitors:\n{bullets(competitors, 'Other products in the market')}\n\n"
        f"Key features:\n{bullets(features, 'Quality and reliability')}\n\n"
        f"Generate the JSON array of {SCENE_COUNT} scenes. Return ONLY the JSON, no explanation:"
    )


def parse_clips(text: str) -> list[VideoClip]:
    """Parse model output into clips, dropping malformed entries.

    Accepts a bare array or an object with a ``clips`` array. Missing
    labels get the canonical label for their position.

    Raises:
        ValueError: if the text is not JSON or has no usable clip.
    """
    payload: Any = json.loads(strip_code_fences(text))
    if isinstance(payload, dict):
        payload = payload.get("clips") or payload.get("scenes")
    if not isinstance(payload, list):
        raise ValueError("storyboard response is not a JSON array")

    clips: list[VideoClip] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        prompt = str(item.get("prompt") or "").strip()
        voiceover = str(item.get("voiceover") or "").strip()
        if not prompt or not voiceover:
            continue
        position = len(clips)
        default_label = SCENE_LABELS[position] if position < SCENE_COUNT else f"Scene {position + 1}"
        label = str(item.get("label") or "").strip() or default_label
        clips.append(VideoClip(label=label, prompt=prompt, voiceover=voiceover))
    if not clips:
        raise ValueError("storyboard response contained no usable clips")
    return clips


def fallback_clips(product: ProductInfo, research: MarketResearch) -> list[VideoClip]:
    """Template storyboard. Has no dependencies and cannot fail."""
    name = product.display_name
    short_name = product.brand or name.split()[0]
    category = product.category or "gear"
    pain = research.pain_points[0].issue if research.pain_points else ""
    pain_line = _shorten(pain, 40) if pain else f"Most {category} just doesn't deliver"
    feature = _shorten(product.features[0], 40) if product.features else "it just works"

    return [
        VideoClip(
            label="Hook",
            prompt=f"Person looking frustrated with their current {category}, relatable "
            "moment, casual setting, handheld camera",
            voiceover="Ever felt like your current solution just isn't cutting it?",
        ),
        VideoClip(
            label="Problem",
            prompt=f"Quick cuts showing common {category} frustrations in real everyday scenarios",
            voiceover=f"{pain_line}. We've all been there.",
        ),
        VideoClip(
            label="Solution",
            prompt=f"Clean product shot of {name}, {short_name} in focus, professional "
            "lighting, product in action",
            voiceover=f"That's why {short_name} made {name}: {feature}.",
        ),
        VideoClip(
            label="CTA",
            prompt=f"{name} on a clean background with text overlay and call to action",
            voiceover=f"Try {short_name} yourself today. Link in bio.",
        ),
    ]


def fit_to_scene_count(clips: list[VideoClip], fallback: list[VideoClip]) -> list[VideoClip]:
    """Truncate to four clips, padding missing positions from *fallback*."""
    fitted = clips[:SCENE_COUNT]
    return fitted + fallback[len(fitted) : SCENE_COUNT]


class StoryboardGenerator:
    """Writes the four-scene narrative for an ad."""

    def __init__(self, llm: LLMClient | None = None) -> None:
        self.llm = llm

    async def _generate_with_model(
        self, product: ProductInfo, research: MarketResearch
    ) -> list[VideoClip]:
        if self.llm is None:
            return []
        try:
            text = await self.llm.generate_text(
                build_user_prompt(product, research),
                system=SYSTEM_PROMPT,
                temperature=0.8,
                max_tokens=800,
            )
            return parse_clips(text)
        except Exception as exc:
            logger.warning("Storyboard generation failed, using template", error=str(exc))
            return []

    async def generate_storyboards(
        self, product: ProductInfo, research: MarketResearch
    ) -> CreativeOutput:
        logger.info("Generating storyboard", product=product.display_name)
        with stage_duration_seconds.labels(stage="storyboard").time():
            generated = await self._generate_with_model(product, research)
        fallback = fallback_clips(product, research)
        clips = fit_to_scene_count(generated, fallback)
        logger.info("Storyboard ready", clips=len(clips), used_fallback=not generated)
        return CreativeOutput(clips=clips, used_fallback=not generated)
