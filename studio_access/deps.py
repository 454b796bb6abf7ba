# studio_access/deps.py
from __future__ import annotations

import logging
from typing import Iterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from studio_access.core.database import get_db
from studio_access.core.errors import PermissionDenied, Unauthorized
from studio_access.mail.service import MailService
from studio_access.services.access_session import AccessSession, PlatformAdmin
from studio_access.services.audit import AuditSink, DatabaseAuditSink
from studio_access.services.permissions import can_access_module, ensure_can_perform
from studio_access.services.session_resolver import load_session_from_claims
from studio_access.services.sessions import SESSION_COOKIE, decode_session_token
from studio_access.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
HOME_PATH = "/"


def _session_claims(request: Request) -> dict | None:
    if hasattr(request.state, "session_claims"):
        return request.state.session_claims
    token = request.cookies.get(SESSION_COOKIE)
    return decode_session_token(token) if token else None


def _redirect(location: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_303_SEE_OTHER, headers={"Location": location})


def get_access_session(
    request: Request,
    db: Session = Depends(get_db),
) -> AccessSession:
    """Resolve the signed cookie into a session, re-validated against the database."""
    if not request.cookies.get(SESSION_COOKIE):
        raise Unauthorized()

    claims = _session_claims(request)
    if not claims:
        raise Unauthorized("Session expired")

    session = load_session_from_claims(db, claims)
    if session is None:
        raise Unauthorized("Invalid session")

    request.state.access_session = session
    return session


def get_access_session_ui(
    request: Request,
    db: Session = Depends(get_db),
) -> AccessSession:
    try:
        return get_access_session(request, db)
    except Unauthorized as exc:
        raise _redirect(LOGIN_PATH) from exc


def get_tenant_scope(
    db: Session = Depends(get_db),
    session: AccessSession = Depends(get_access_session),
) -> Iterator[TenantScope]:
    scope = TenantScope(db, session)
    try:
        yield scope
    finally:
        scope.release()


def get_mail_service() -> MailService:
    return MailService()


def get_audit_sink(db: Session = Depends(get_db)) -> AuditSink:
    return DatabaseAuditSink(db)


def require_platform_admin(
    session: AccessSession = Depends(get_access_session),
) -> PlatformAdmin:
    if not isinstance(session, PlatformAdmin):
        logger.warning("Access denied (platform_admin): user_id=%s role=%s", session.user_id, session.role.value)
        raise PermissionDenied()
    return session


def require_capability(capability: str):
    def _dependency(session: AccessSession = Depends(get_access_session)) -> AccessSession:
        ensure_can_perform(session, capability)
        return session

    return _dependency


def require_module_ui(
    module: str,
    session: AccessSession = Depends(get_access_session_ui),
) -> AccessSession:
    """Page guard keyed by the `{module}` path parameter."""
    if not can_access_module(session, module):
        logger.warning(
            "Access denied (module): user_id=%s role=%s module=%s",
            session.user_id,
            session.role.value,
            module,
        )
        raise _redirect(HOME_PATH)
    return session
