from __future__ import annotations

"""
EMBED_SUMMARY: Email providers (console and SendGrid) used by the password reset flow.
EMBED_TAGS: email, sendgrid, provider, notifications
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

from .config import get_settings


logger = logging.getLogger("mailer")

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    from_email: str
    subject: str
    text: str


class EmailProvider(ABC):
    @abstractmethod
    def send(self, message: EmailMessage) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class ConsoleEmailProvider(EmailProvider):
    """Logs messages instead of delivering them; keeps them for inspection."""

    def __init__(self) -> None:
        self.outbox: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> bool:
        self.outbox.append(message)
        logger.info("email to=%s subject=%s\n%s", message.to, message.subject, message.text)
        return True


class SendGridEmailProvider(EmailProvider):
    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def send(self, message: EmailMessage) -> bool:
        payload = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": message.from_email},
            "subject": message.subject,
            "content": [{"type": "text/plain", "value": message.text}],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            with httpx.Client(timeout=30) as client:
                resp = client.post(SENDGRID_SEND_URL, headers=headers, json=payload)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error("sendgrid rejected email to=%s status=%s body=%s", message.to, exc.response.status_code, exc.response.text)
            return False
        except httpx.HTTPError as exc:
            logger.error("sendgrid request failed to=%s: %s", message.to, exc)
            return False
        return True


def get_email_provider() -> EmailProvider:
    settings = get_settings()
    if settings.email_provider == "sendgrid":
        if not settings.sendgrid_api_key:
            raise RuntimeError("SendGrid API key not configured")
        return SendGridEmailProvider(api_key=settings.sendgrid_api_key)
    return ConsoleEmailProvider()
