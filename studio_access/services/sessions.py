from __future__ import annotations

import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from studio_access.core import config
from studio_access.services.access_session import AccessSession, token_claims

SESSION_COOKIE = "studio_session"
SESSION_SALT = "studio-session"


def _serializer() -> URLSafeTimedSerializer:
    if not config.SESSION_SECRET:
        raise RuntimeError("SESSION_SECRET is not configured.")
    return URLSafeTimedSerializer(config.SESSION_SECRET, salt=SESSION_SALT)


def create_session_token(session: AccessSession) -> str:
    payload: Dict[str, Any] = {
        **token_claims(session),
        "exp": int(time.time()) + config.SESSION_MAX_AGE_SECONDS,
    }
    return _serializer().dumps(payload)


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = _serializer().loads(token, max_age=config.SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if exp is not None:
        try:
            if int(exp) < int(time.time()):
                return None
        except (TypeError, ValueError):
            return None
    return payload


def build_session_cookie_options(request: Request | None = None) -> dict[str, Any]:
    secure = config.SESSION_COOKIE_SECURE
    samesite = config.SESSION_COOKIE_SAMESITE

    host = ""
    origin_host = ""
    if request is not None:
        host = (request.headers.get("x-forwarded-host") or request.headers.get("host") or "").lower()
        host = host.split(",")[0].strip().split(":")[0]

        origin = (request.headers.get("origin") or "").strip()
        if origin:
            origin_host = (urlsplit(origin).hostname or "").lower()

    is_local_request = host in {"", "localhost", "127.0.0.1", "testserver"}
    is_cross_site_request = bool(origin_host and host and origin_host != host)

    # Public hosts never get an insecure cookie.
    if not is_local_request:
        secure = True

    # Frontend and API on different hosts need SameSite=None.
    if is_cross_site_request and secure:
        samesite = "none"

    # Browsers reject SameSite=None without Secure.
    if samesite == "none" and not secure:
        samesite = "lax"

    return {
        "domain": config.SESSION_COOKIE_DOMAIN,
        "httponly": config.SESSION_COOKIE_HTTPONLY,
        "samesite": samesite,
        "path": "/",
        "secure": secure,
    }


def set_session_cookie(response: Response, token: str, request: Request | None = None) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=config.SESSION_MAX_AGE_SECONDS,
        **build_session_cookie_options(request),
    )


def clear_session_cookie(response: Response, request: Request | None = None) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        **build_session_cookie_options(request),
    )
