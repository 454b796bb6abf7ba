from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from studio_access.core.request_context import set_request_context
from studio_access.services.sessions import SESSION_COOKIE, decode_session_token


class SessionContextMiddleware(BaseHTTPMiddleware):
    """Decodes the signed session cookie once per request.

    Only the claims are exposed here; the membership is re-checked against the
    database by the ``get_access_session`` dependency.
    """

    async def dispatch(self, request, call_next):
        request.state.session_claims = None

        token = request.cookies.get(SESSION_COOKIE)
        if token:
            claims = decode_session_token(token)
            request.state.session_claims = claims
            if claims:
                set_request_context(
                    tenant_id=_as_str(claims.get("tenant_id")),
                    user_id=_as_str(claims.get("user_id")),
                    membership_id=_as_str(claims.get("membership_id")),
                )

        return await call_next(request)


def _as_str(value) -> str | None:
    return str(value) if value is not None else None
