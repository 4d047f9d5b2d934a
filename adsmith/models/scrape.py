"""Result of scraping a product URL."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

from adsmith.models.base import Failure
from adsmith.models.product import ProductInfo
from adsmith.models.research import MarketResearch


class ScrapeSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    data: ProductInfo
    url: str
    research: MarketResearch | None = None


ScrapeResult = ScrapeSuccess | Failure
