"""Client for the Firecrawl content-fetch API.

Firecrawl provides web search and page scraping (markdown or schema-driven
JSON extraction). Search responses come back in three shapes depending on
API version and options:

- ``{"web": [...]}``
- ``{"data": [...]}``
- ``{"data": {"web": [...]}}``

:func:`normalize_search_response` is the only place that knows about this.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from typing_extensions import TypedDict

from adsmith.clients._http import request_json
from adsmith.errors import CollaboratorError, ServiceNotConfiguredError

logger = structlog.get_logger()

SERVICE = "firecrawl"


class FirecrawlSearchItem(TypedDict):
    url: str
    title: str
    description: str


def _web_items(payload: dict[str, Any]) -> list[Any]:
    if isinstance(payload.get("web"), list):
        return payload["web"]
    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("web"), list):
        return data["web"]
    return []


def normalize_search_response(payload: dict[str, Any]) -> list[FirecrawlSearchItem]:
    """Flatten any known search response shape into a list of items.

    Items without both a URL and a title are dropped.
    """
    items: list[FirecrawlSearchItem] = []
    for raw in _web_items(payload):
        if not isinstance(raw, dict):
            continue
        url = raw.get("url")
        title = raw.get("title")
        if not url or not title:
            continue
        items.append(
            {
                "url": str(url),
                "title": str(title),
                "description": str(raw.get("description") or ""),
            }
        )
    return items


class FirecrawlClient:
    """Firecrawl v2 API client."""

    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        if not api_key:
            raise ServiceNotConfiguredError("Firecrawl API key")
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = "https://api.firecrawl.dev/v2"

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def search(self, query: str, limit: int = 8) -> list[FirecrawlSearchItem]:
        """Web search.

        Args:
            query: Search query string; supports site: and OR operators.
            limit: Maximum number of results.

        Returns:
            List of dicts with keys: url, title, description.
        """
        async with self._client() as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/search",
                service=SERVICE,
                operation="search",
                json={"query": query, "limit": limit},
            )
        return normalize_search_response(data)

    async def scrape_markdown(self, url: str, timeout_ms: int = 15000) -> str:
        """Scrape a page's main content as markdown.

        The call is time-boxed both server-side (``timeout`` in the request)
        and client-side (slightly longer read timeout).
        """
        async with self._client(timeout=timeout_ms / 1000 + 5) as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/scrape",
                service=SERVICE,
                operation="scrape",
                json={
                    "url": url,
                    "formats": ["markdown"],
                    "onlyMainContent": True,
                    "timeout": timeout_ms,
                },
            )
        payload = data.get("data", data)
        if not isinstance(payload, dict):
            return ""
        return str(payload.get("markdown") or "")

    async def scrape_json(self, url: str, schema: dict[str, object]) -> dict[str, Any] | None:
        """Scrape a page and extract structured data matching *schema*.

        Returns None when the service returned no JSON payload.
        """
        async with self._client(timeout=max(self.timeout, 60.0)) as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/scrape",
                service=SERVICE,
                operation="scrape_json",
                json={"url": url, "formats": [{"type": "json", "schema": schema}]},
            )
        payload = data.get("data", data)
        if not isinstance(payload, dict):
            raise CollaboratorError(SERVICE, "scrape_json returned no data object")
        extracted = payload.get("json")
        if not isinstance(extracted, dict) or not extracted:
            logger.info("Firecrawl returned no structured data", url=url)
            return None
        return extracted
