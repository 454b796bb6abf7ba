from __future__ import annotations

import logging
import uuid

from studio_access.mail.base import MailMessage, MailProvider, MailSendResult, mask_email

logger = logging.getLogger(__name__)


class LogOnlyMailProvider(MailProvider):
    """Dev/test provider: records the send without delivering and without the body."""

    def __init__(self) -> None:
        self.sent: list[MailMessage] = []

    def send(self, message: MailMessage) -> MailSendResult:
        self.sent.append(message)
        logger.info("mail (log only) to=%s subject=%s", mask_email(message.to), message.subject)
        return MailSendResult(status="logged", provider_message_id=f"log-{uuid.uuid4().hex[:10]}")
