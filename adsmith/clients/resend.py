"""Client for the Resend transactional email API."""

from __future__ import annotations

import httpx
import structlog

from adsmith.clients._http import request_json
from adsmith.errors import CollaboratorError, ServiceNotConfiguredError

logger = structlog.get_logger()

SERVICE = "resend"


class ResendClient:
    """Resend API client. One call per message, no retries."""

    def __init__(self, api_key: str, timeout: float = 30.0) -> None:
        if not api_key:
            raise ServiceNotConfiguredError("Resend API key")
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = "https://api.resend.com"

    async def send(self, *, sender: str, to: str, subject: str, html: str) -> str:
        """Send one email and return the provider message id."""
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
        ) as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/emails",
                service=SERVICE,
                operation="send",
                json={"from": sender, "to": [to], "subject": subject, "html": html},
            )
        message_id = data.get("id")
        if not message_id:
            raise CollaboratorError(SERVICE, "send returned no message id")
        logger.info("Email accepted", to=to, message_id=message_id)
        return str(message_id)
