"""Exception hierarchy.

Exceptions are raised by collaborator clients and internal helpers.
Top-level workflows convert them into ``Failure`` result values; only
``ServiceNotConfiguredError`` is allowed to escape component constructors.
"""

from __future__ import annotations


class AdsmithError(Exception):
    """Base class for all adsmith errors."""


class ServiceNotConfiguredError(AdsmithError):
    """A collaborator credential is missing."""

    def __init__(self, service: str) -> None:
        self.service = service
        super().__init__(f"{service} not configured")


class CollaboratorError(AdsmithError):
    """A call to an external collaborator failed or returned an unusable shape."""

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"{service}: {message}")


class PollTimeoutError(AdsmithError):
    """A bounded wait-until-ready loop ran out of attempts."""


class MediaAssemblyError(AdsmithError):
    """Local ffmpeg concatenation or muxing failed."""
