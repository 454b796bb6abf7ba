from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from studio_access.core import config
from studio_access.mail.base import MailMessage, MailProvider, MailSendResult, mask_email

logger = logging.getLogger(__name__)


class ResendMailProvider(MailProvider):
    MAX_RETRIES = 3
    INTEGRATION_NAME = "resend"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        api_url: str | None = None,
        sender: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.RESEND_API_KEY
        self.api_url = api_url or config.RESEND_API_URL
        self.sender = sender or config.MAIL_FROM
        self.timeout = timeout if timeout is not None else config.MAIL_TIMEOUT_SECONDS
        self._client = client

    def _payload(self, message: MailMessage) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.tags:
            payload["tags"] = [{"name": key, "value": value} for key, value in message.tags.items()]
        return payload

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self._client is not None:
            return self._client.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.api_url, json=payload, headers=headers)

    def send(self, message: MailMessage) -> MailSendResult:
        if not self.api_key:
            return MailSendResult(status="failed", error="RESEND_API_KEY not configured")

        payload = self._payload(message)
        last_error: str | None = None
        for attempt in range(1, self.MAX_RETRIES + 1):
            try:
                response = self._post(payload)
            except httpx.HTTPError as exc:
                last_error = str(exc)
                logger.warning(
                    "resend request error attempt=%s to=%s error=%s",
                    attempt,
                    mask_email(message.to),
                    exc.__class__.__name__,
                )
            else:
                body: dict[str, Any] = {}
                try:
                    body = response.json()
                except ValueError:
                    body = {}
                if response.status_code < 400:
                    return MailSendResult(
                        status="sent",
                        provider_message_id=body.get("id"),
                        response_payload=body,
                    )
                last_error = str(body.get("message") or f"HTTP {response.status_code}")
                # 4xx (exceto 429) não melhora com retry
                if response.status_code < 500 and response.status_code != 429:
                    break
            if attempt < self.MAX_RETRIES:
                time.sleep(0.5 * attempt)

        logger.error("resend send failed to=%s error=%s", mask_email(message.to), last_error)
        return MailSendResult(status="failed", error=last_error)
