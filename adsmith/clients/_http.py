"""Shared request helper for collaborator clients."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from adsmith.errors import CollaboratorError
from adsmith.metrics import collaborator_calls_total

logger = structlog.get_logger()


async def request_json(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    service: str,
    operation: str,
    **kwargs: Any,
) -> dict[str, Any]:
    """Send a request and return the decoded JSON object.

    Raises:
        CollaboratorError: on transport errors, non-2xx responses, or a
            body that is not a JSON object.
    """
    try:
        resp = await client.request(method, url, **kwargs)
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as exc:
        collaborator_calls_total.labels(service=service, operation=operation, status="error").inc()
        body = exc.response.text[:300]
        raise CollaboratorError(
            service, f"{operation} returned {exc.response.status_code}: {body}"
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        collaborator_calls_total.labels(service=service, operation=operation, status="error").inc()
        raise CollaboratorError(service, f"{operation} failed: {exc}") from exc

    if not isinstance(data, dict):
        collaborator_calls_total.labels(service=service, operation=operation, status="error").inc()
        raise CollaboratorError(service, f"{operation} returned a non-object body")

    collaborator_calls_total.labels(service=service, operation=operation, status="ok").inc()
    return data
