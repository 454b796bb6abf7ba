from datetime import datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from studio_access.deps import get_mail_service
from studio_access.mail.log_provider import LogOnlyMailProvider
from studio_access.mail.service import MailService
from studio_access.main import create_app
from studio_access.models.client import Client
from studio_access.models.tenant import Tenant
from studio_access.services.sessions import SESSION_COOKIE


def _build_client(session_factory):
    provider = LogOnlyMailProvider()
    app = create_app(session_factory)
    app.dependency_overrides[get_mail_service] = lambda: MailService(provider=provider)
    return TestClient(app), provider


def _sign_in(client, email, tenant_id, code="246810"):
    with patch("studio_access.services.session_resolver.generate_code", return_value=code):
        sent = client.post("/api/auth/send-code", json={"email": email, "tenant_id": tenant_id})
    assert sent.status_code == 200
    return client.post("/api/auth/verify", json={"email": email, "tenant_id": tenant_id, "code": code})


def test_tenant_lookup_lists_workspaces(session_factory, studio):
    client, _ = _build_client(session_factory)

    response = client.post("/api/auth/tenant-lookup", json={"email": "alice@example.com"})

    assert response.status_code == 200
    tenants = response.json()["tenants"]
    assert [tenant["id"] for tenant in tenants] == ["100", "101"]
    assert tenants[1]["name"] == "Alice Realty"


def test_send_code_acknowledges_unknown_targets_identically(session_factory, studio):
    client, provider = _build_client(session_factory)

    unknown = client.post("/api/auth/send-code", json={"email": "nobody@example.com", "tenant_id": "100"})
    known = client.post("/api/auth/send-code", json={"email": "alice@example.com", "tenant_id": "100"})

    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json() == {"success": True}
    assert [message.to for message in provider.sent] == ["alice@example.com"]


def test_verify_sets_signed_cookie_and_me_reads_it(session_factory, studio):
    client, _ = _build_client(session_factory)

    response = _sign_in(client, "alice@example.com", "100")

    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "tenant_admin"
    assert body["tenant_id"] == 1
    assert body["membership_id"] == 100
    assert "clients" in body["modules"]
    set_cookie = response.headers.get("set-cookie", "")
    assert f"{SESSION_COOKIE}=" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Path=/" in set_cookie

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["tenant_slug"] == "alpha"


def test_verify_with_wrong_code_returns_generic_error(session_factory, studio):
    client, _ = _build_client(session_factory)
    client.post("/api/auth/send-code", json={"email": "alice@example.com", "tenant_id": "100"})

    response = client.post(
        "/api/auth/verify",
        json={"email": "alice@example.com", "tenant_id": "100", "code": "000000"},
    )

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid or expired code"}


def test_code_is_not_reusable_over_http(session_factory, studio):
    client, _ = _build_client(session_factory)
    assert _sign_in(client, "alice@example.com", "100", code="112233").status_code == 200

    replay = client.post(
        "/api/auth/verify",
        json={"email": "alice@example.com", "tenant_id": "100", "code": "112233"},
    )

    assert replay.status_code == 401


def test_me_without_cookie_is_unauthorized(session_factory, studio):
    client, _ = _build_client(session_factory)

    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["success"] is False


def test_tampered_cookie_is_rejected(session_factory, studio):
    client, _ = _build_client(session_factory)
    client.cookies.set(SESSION_COOKIE, "forged.value.here")

    response = client.get("/api/auth/me")

    assert response.status_code == 401


def test_logout_clears_cookie(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "100")

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert f'{SESSION_COOKIE}=""' in response.headers.get("set-cookie", "")
    assert client.get("/api/auth/me").status_code == 401


def test_clients_are_listed_for_the_session_tenant_only(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "100")

    listing = client.get("/api/tenant/clients")
    foreign = client.get("/api/tenant/clients/20")

    assert listing.status_code == 200
    assert [row["id"] for row in listing.json()] == [10]
    assert foreign.status_code == 404


def test_same_person_sees_other_studio_only_after_switching(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "101")

    me = client.get("/api/auth/me").json()
    assert me["role"] == "client"
    assert me["tenant_id"] == 2
    # Client memberships do not get the studio's client roster.
    assert client.get("/api/tenant/clients").status_code == 403


def test_staff_without_flag_cannot_create_clients(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "sam@example.com", "102")

    response = client.post("/api/tenant/clients", json={"name": "New Client"})

    assert response.status_code == 403
    assert response.json() == {"success": False, "error": "Insufficient permissions"}


def test_admin_creates_and_deletes_client(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "100")

    created = client.post(
        "/api/tenant/clients",
        json={"name": "Harbour Homes", "email": "Desk@Harbour.test"},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["tenant_id"] == 1
    assert body["email"] == "desk@harbour.test"

    deleted = client.delete(f"/api/tenant/clients/{body['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/tenant/clients/{body['id']}").status_code == 404

    cross = client.delete("/api/tenant/clients/20")
    assert cross.status_code == 404

    db = session_factory()
    try:
        assert db.query(Client).filter(Client.id == 20).one().deleted_at is None
    finally:
        db.close()


def test_mutation_is_locked_without_subscription(session_factory, studio):
    db = session_factory()
    try:
        tenant = db.query(Tenant).filter(Tenant.id == 1).one()
        tenant.subscription_status = "canceled"
        tenant.subscription_ends_at = datetime.utcnow() - timedelta(days=1)
        db.commit()
    finally:
        db.close()

    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "100")

    response = client.post("/api/tenant/clients", json={"name": "Late Client"})

    assert response.status_code == 402
    assert response.json()["success"] is False
    assert client.get("/api/tenant/clients").status_code == 200


def test_platform_admin_impersonation_flow(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "root@studiio.test", "MASTER")

    grant = client.post("/api/master/impersonate", json={"tenant_id": 2})
    assert grant.status_code == 200
    payload = grant.json()
    assert payload["success"] is True

    verify = client.post(
        "/api/auth/verify",
        json={"email": payload["email"], "tenant_id": payload["membership_id"], "code": payload["code"]},
    )
    assert verify.status_code == 200
    assert verify.json()["role"] == "tenant_admin"
    assert verify.json()["tenant_id"] == 2


def test_impersonation_requires_platform_admin(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "alice@example.com", "100")

    response = client.post("/api/master/impersonate", json={"tenant_id": 2})

    assert response.status_code == 403


def test_platform_admin_has_no_tenant_scope(session_factory, studio):
    client, _ = _build_client(session_factory)
    _sign_in(client, "root@studiio.test", "MASTER")

    response = client.get("/api/tenant/clients")

    assert response.status_code == 401


def test_ui_pages_redirect_instead_of_erroring(session_factory, studio):
    client, _ = _build_client(session_factory)

    anonymous = client.get("/", follow_redirects=False)
    assert anonymous.status_code == 303
    assert anonymous.headers["location"] == "/login"

    _sign_in(client, "eddie@example.com", "103")
    denied = client.get("/tenant/clients", follow_redirects=False)
    assert denied.status_code == 303
    assert denied.headers["location"] == "/"

    allowed = client.get("/tenant/galleries", follow_redirects=False)
    assert allowed.status_code == 200
    assert "Galleries" in allowed.text


def test_health_returns_request_id(session_factory):
    client, _ = _build_client(session_factory)

    response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "req-123"
