"""Shared result primitives.

Every top-level operation returns a discriminated union on ``success``:
an operation-specific success model, or :class:`Failure`.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(UTC)


class Failure(BaseModel):
    """Failure arm of every operation result."""

    model_config = ConfigDict(frozen=True)

    success: Literal[False] = False
    error: str
