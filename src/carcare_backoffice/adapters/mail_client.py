"""Transactional mail API client adapter."""

import base64
from dataclasses import dataclass
from typing import Protocol

import httpx


@dataclass(frozen=True)
class MailAttachment:
    """A file attached to an outgoing email."""

    filename: str
    content: bytes
    content_type: str = "application/pdf"


class MailClient(Protocol):
    """Interface for sending notification emails."""

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        attachments: list[MailAttachment] | None = None,
    ) -> None:
        """Send an email. Raises on delivery failure."""


@dataclass
class HttpxMailClient:
    """Mail client posting JSON to an HTTP mail API."""

    api_url: str
    api_key: str
    sender: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, api_url: str, api_key: str, sender: str) -> "HttpxMailClient":
        """Create a mail client with a managed httpx session."""
        return cls(
            api_url=api_url,
            api_key=api_key,
            sender=sender,
            http_client=httpx.AsyncClient(),
        )

    async def send(
        self,
        to: str,
        subject: str,
        html_body: str,
        attachments: list[MailAttachment] | None = None,
    ) -> None:
        """Send a message through the mail API."""
        payload: dict[str, object] = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }
        if attachments:
            payload["attachments"] = [
                {
                    "filename": item.filename,
                    "content": base64.b64encode(item.content).decode("ascii"),
                    "content_type": item.content_type,
                }
                for item in attachments
            ]
        response = await self.http_client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=15,
        )
        response.raise_for_status()

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()
