from types import SimpleNamespace
from unittest.mock import patch

import httpx

from studio_access.core import config
from studio_access.mail.base import MailMessage, mask_email
from studio_access.mail.log_provider import LogOnlyMailProvider
from studio_access.mail.resend_provider import ResendMailProvider
from studio_access.mail.service import MailService


def _message() -> MailMessage:
    return MailMessage(to="alice@example.com", subject="Code", html="<b>123456</b>", tags={"category": "login_code"})


def _provider(handler) -> ResendMailProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ResendMailProvider(
        api_key="re_test",
        api_url="https://mail.test/emails",
        sender="Studiio <no-reply@studiio.test>",
        timeout=1,
        client=client,
    )


def test_resend_provider_posts_payload_with_bearer_token():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_1"})

    result = _provider(handler).send(_message())

    assert result.status == "sent"
    assert result.provider_message_id == "msg_1"
    assert seen[0].headers["Authorization"] == "Bearer re_test"
    body = seen[0].read().decode()
    assert '"to":["alice@example.com"]' in body.replace(" ", "")
    assert "login_code" in body


def test_resend_provider_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503, json={"message": "unavailable"})

    with patch("studio_access.mail.resend_provider.time.sleep") as sleep:
        result = _provider(handler).send(_message())

    assert result.status == "failed"
    assert result.error == "unavailable"
    assert len(calls) == ResendMailProvider.MAX_RETRIES
    assert sleep.call_count == ResendMailProvider.MAX_RETRIES - 1


def test_resend_provider_does_not_retry_client_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(422, json={"message": "invalid from"})

    result = _provider(handler).send(_message())

    assert result.status == "failed"
    assert len(calls) == 1


def test_resend_provider_without_key_fails_without_calling_out():
    provider = ResendMailProvider(api_key="", client=httpx.Client(transport=httpx.MockTransport(lambda r: 1 / 0)))

    assert provider.send(_message()).status == "failed"


def test_default_provider_falls_back_to_log_only(monkeypatch):
    monkeypatch.setattr(config, "MAIL_PROVIDER", "resend")
    monkeypatch.setattr(config, "RESEND_API_KEY", "")

    assert isinstance(MailService().provider, LogOnlyMailProvider)

    monkeypatch.setattr(config, "RESEND_API_KEY", "re_live")
    assert isinstance(MailService().provider, ResendMailProvider)


def test_login_code_mail_is_branded_per_workspace():
    provider = LogOnlyMailProvider()
    service = MailService(provider=provider)
    tenant = SimpleNamespace(name="Alpha <Studio>", brand_color="#112233")

    service.send_login_code(email="alice@example.com", code="987654", tenant=tenant)
    service.send_login_code(email="root@studiio.test", code="123123", tenant=None)

    tenant_mail, master_mail = provider.sent
    assert "987654" in tenant_mail.html
    assert "Alpha &lt;Studio&gt;" in tenant_mail.html
    assert "#112233" in tenant_mail.html
    assert master_mail.subject == f"Your {config.PLATFORM_NAME} Master Admin login code"


def test_mask_email():
    assert mask_email("alice@example.com") == "a***@example.com"
    assert mask_email("broken") == "***"
