"""Email transports. Resend over HTTPS, or a log-only stand-in when unconfigured."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx
import structlog
from bs4 import BeautifulSoup

from app.core.config import settings
from app.core.errors import NotificationError

logger = structlog.get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


@dataclass
class EmailMessage:
    from_address: str
    to: str
    subject: str
    html: str

    @property
    def text(self) -> str:
        """Plain-text alternative derived from the HTML body."""
        return BeautifulSoup(self.html, "html.parser").get_text("\n", strip=True)

    def to_payload(self) -> dict:
        return {
            "from": self.from_address,
            "to": [self.to],
            "subject": self.subject,
            "html": self.html,
            "text": self.text,
        }


class EmailSender(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class ResendEmailSender:
    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self._client = client
        self._timeout = timeout

    async def send(self, message: EmailMessage) -> None:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    RESEND_API_URL, json=message.to_payload(), headers=headers
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(
                        RESEND_API_URL, json=message.to_payload(), headers=headers
                    )
        except httpx.HTTPError as exc:
            raise NotificationError(f"Resend request failed: {exc}") from exc

        if response.is_error:
            raise NotificationError(
                f"Resend API error: {response.status_code} - {response.text}"
            )

        logger.info(
            "email.sent",
            to=message.to,
            provider_id=response.json().get("id"),
        )


class LoggingEmailSender:
    """Used when no provider key is configured; records what would be sent."""

    def __init__(self):
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.outbox.append(message)
        logger.info("email.simulated", to=message.to, subject=message.subject)


def build_email_sender() -> EmailSender:
    if settings.RESEND_API_KEY:
        return ResendEmailSender(settings.RESEND_API_KEY)

    logger.warning("email.resend_key_missing")
    return LoggingEmailSender()
