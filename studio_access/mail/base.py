from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass
class MailMessage:
    to: str
    subject: str
    html: str
    tags: dict[str, str] | None = None


@dataclass
class MailSendResult:
    status: str
    provider_message_id: str | None = None
    error: str | None = None
    response_payload: dict[str, Any] | None = None


class MailProvider(Protocol):
    def send(self, message: MailMessage) -> MailSendResult:
        ...


def mask_email(email: str) -> str:
    local, _, domain = (email or "").partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"
