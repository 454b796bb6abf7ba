from __future__ import annotations

import html
import logging
from typing import Optional

from studio_access.core import config
from studio_access.mail.base import MailMessage, MailProvider, MailSendResult, mask_email
from studio_access.mail.log_provider import LogOnlyMailProvider
from studio_access.mail.resend_provider import ResendMailProvider
from studio_access.models.tenant import Tenant

logger = logging.getLogger(__name__)

DEFAULT_BRAND_COLOR = "#10b981"


def build_login_code_html(*, code: str, workspace_name: str, brand_color: str, ttl_minutes: int) -> str:
    name = html.escape(workspace_name)
    color = html.escape(brand_color)
    return f"""
<div style="font-family: Arial, sans-serif; max-width: 520px; margin: 0 auto;">
  <div style="height: 6px; background: {color}; border-radius: 6px;"></div>
  <h1 style="color: #0f172a;">Verification Code</h1>
  <p style="color: #64748b; font-size: 16px;">Use the code below to sign in to your {name} account.</p>
  <div style="background: #f8fafc; border-radius: 16px; padding: 32px; text-align: center; margin: 32px 0;">
    <span style="font-size: 48px; font-weight: 900; letter-spacing: 0.2em; color: #0f172a;">{html.escape(code)}</span>
  </div>
  <p style="font-size: 13px; color: #94a3b8; text-align: center;">This code will expire in {ttl_minutes} minutes. If you didn't request this code, you can safely ignore this email.</p>
</div>
""".strip()


class MailService:
    def __init__(self, provider: Optional[MailProvider] = None) -> None:
        self.provider = provider or self._default_provider()

    @staticmethod
    def _default_provider() -> MailProvider:
        if config.MAIL_PROVIDER == "resend" and config.RESEND_API_KEY:
            return ResendMailProvider()
        if config.MAIL_PROVIDER == "resend":
            logger.warning("MAIL_PROVIDER=resend without RESEND_API_KEY; falling back to log only")
        return LogOnlyMailProvider()

    def send_login_code(self, *, email: str, code: str, tenant: Optional[Tenant]) -> MailSendResult:
        workspace_name = tenant.name if tenant is not None else f"{config.PLATFORM_NAME} Master Admin"
        brand_color = (tenant.brand_color if tenant is not None else None) or DEFAULT_BRAND_COLOR
        message = MailMessage(
            to=email,
            subject=f"Your {workspace_name} login code",
            html=build_login_code_html(
                code=code,
                workspace_name=workspace_name,
                brand_color=brand_color,
                ttl_minutes=max(1, config.LOGIN_CODE_TTL_SECONDS // 60),
            ),
            tags={"category": "login_code"},
        )
        result = self.provider.send(message)
        if result.status == "failed":
            logger.error("login code email failed to=%s error=%s", mask_email(email), result.error)
        return result
