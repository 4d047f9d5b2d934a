"""Bounded wait-until-ready polling for long-running collaborator jobs."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import structlog

from adsmith.errors import PollTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = structlog.get_logger()

T = TypeVar("T")


async def wait_until_ready(
    check: Callable[[], Awaitable[T | None]],
    *,
    interval: float,
    max_attempts: int,
    label: str,
) -> T:
    """Call *check* until it returns a value, sleeping *interval* between calls.

    *check* returns None while the job is still running and raises when
    the job has failed. The total wait is capped at
    ``interval * max_attempts``.

    Raises PollTimeoutError after *max_attempts* calls without a result.
    """
    for attempt in range(1, max_attempts + 1):
        result = await check()
        if result is not None:
            logger.debug("Poll complete", job=label, attempts=attempt)
            return result
        if attempt < max_attempts:
            await asyncio.sleep(interval)
    logger.warning("Poll attempts exhausted", job=label, max_attempts=max_attempts)
    raise PollTimeoutError(f"{label} not ready after {max_attempts} attempts")
