"""Client for the RunwayML text-to-video API.

Generation is asynchronous: creating a task returns an id that is polled
until it reaches a terminal status.
"""

from __future__ import annotations

import httpx
import structlog

from adsmith.clients._http import request_json
from adsmith.errors import CollaboratorError, ServiceNotConfiguredError
from adsmith.polling import wait_until_ready

logger = structlog.get_logger()

SERVICE = "runway"
API_VERSION = "2024-11-06"

_FAILED_STATUSES = frozenset({"FAILED", "CANCELLED"})


class RunwayClient:
    """RunwayML API client."""

    def __init__(
        self,
        api_secret: str,
        *,
        model: str = "veo3.1_fast",
        timeout: float = 30.0,
        poll_interval: float = 5.0,
        max_polls: int = 120,
    ) -> None:
        if not api_secret:
            raise ServiceNotConfiguredError("RunwayML API secret")
        self.api_secret = api_secret
        self.model = model
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.base_url = "https://api.dev.runwayml.com/v1"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_secret}",
                "X-Runway-Version": API_VERSION,
            },
        )

    async def create_text_to_video(self, prompt: str, ratio: str, duration: int) -> str:
        """Submit a text-to-video task and return its id."""
        async with self._client() as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/text_to_video",
                service=SERVICE,
                operation="text_to_video",
                json={
                    "model": self.model,
                    "promptText": prompt,
                    "ratio": ratio,
                    "duration": duration,
                },
            )
        task_id = data.get("id")
        if not task_id:
            raise CollaboratorError(SERVICE, "text_to_video returned no task id")
        logger.info("Runway task created", task_id=task_id, prompt=prompt[:50])
        return str(task_id)

    async def get_task_output(self, task_id: str) -> str | None:
        """Return the output URL if the task succeeded, None while it is running.

        Raises CollaboratorError when the task failed or was cancelled.
        """
        async with self._client() as client:
            data = await request_json(
                client,
                "GET",
                f"{self.base_url}/tasks/{task_id}",
                service=SERVICE,
                operation="get_task",
            )
        status = str(data.get("status", ""))
        if status in _FAILED_STATUSES:
            reason = data.get("failure") or data.get("failureCode") or status
            raise CollaboratorError(SERVICE, f"task {task_id} {status.lower()}: {reason}")
        if status != "SUCCEEDED":
            return None
        output = data.get("output")
        if isinstance(output, list) and output and output[0]:
            return str(output[0])
        raise CollaboratorError(SERVICE, "No video output returned")

    async def wait_for_output(self, task_id: str) -> str:
        return await wait_until_ready(
            lambda: self.get_task_output(task_id),
            interval=self.poll_interval,
            max_attempts=self.max_polls,
            label=f"runway task {task_id}",
        )

    async def generate_video(self, prompt: str, ratio: str, duration: int) -> str:
        """Create a task and wait for its video URL."""
        task_id = await self.create_text_to_video(prompt, ratio, duration)
        return await self.wait_for_output(task_id)
