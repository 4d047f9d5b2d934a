"""Scraped product data."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_LEADING_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")


class ProductInfo(BaseModel):
    """Product facts extracted from a product page by the content-fetch service."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = ""
    price: str = ""
    currency: str = ""
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    review_count: str = Field(default="", alias="reviewCount")
    availability: str = ""
    description: str = ""
    features: list[str] = Field(default_factory=list)
    brand: str = ""
    category: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: object) -> object:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    @field_validator("review_count", "price", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        # The scrape schema asks for strings but numbers come back often
        if isinstance(value, int | float):
            return str(value)
        return value

    @field_validator("rating", mode="before")
    @classmethod
    def _clamp_rating(cls, value: object) -> object:
        # "4.6 out of 5 stars" -> 4.6; "N/A" and other text -> None
        if isinstance(value, str):
            match = _LEADING_NUMBER.search(value)
            if match is None:
                return None
            value = float(match.group().replace(",", "."))
        if isinstance(value, int | float):
            return min(max(float(value), 0.0), 5.0)
        return value

    @field_validator("features", "image_urls", mode="before")
    @classmethod
    def _listify(cls, value: object) -> object:
        if isinstance(value, str):
            return [value.strip()] if value.strip() else []
        if isinstance(value, list):
            return [str(item).strip() for item in value if item is not None and str(item).strip()]
        return value

    @property
    def display_name(self) -> str:
        return self.title or self.brand or "this product"


# JSON schema handed to the content-fetch service for structured extraction.
PRODUCT_SCRAPE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Product name/title"},
        "price": {"type": "string", "description": "Product price with currency symbol"},
        "currency": {"type": "string", "description": "Currency code (USD, EUR, etc.)"},
        "rating": {"type": "number", "description": "Product rating out of 5"},
        "reviewCount": {"type": "string", "description": "Number of reviews"},
        "availability": {"type": "string", "description": "Stock availability status"},
        "description": {
            "type": "string",
            "description": "Product description (first 300 chars)",
        },
        "features": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Key product features as bullet points (max 5)",
        },
        "brand": {"type": "string", "description": "Product brand name"},
        "category": {"type": "string", "description": "Product category"},
        "imageUrl": {
            "type": "string",
            "description": "Main product image URL (full URL starting with http)",
        },
        "imageUrls": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Additional product image URLs",
        },
    },
}
