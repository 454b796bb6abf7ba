from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid or expired code"


class AccessError(Exception):
    """Base for every authorization failure recovered at the request boundary."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AccessError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class PermissionDenied(AccessError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class InvalidOrExpiredCode(AccessError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = INVALID_CODE_MESSAGE

    def __init__(self) -> None:
        # Same text for every cause so callers cannot probe which emails exist.
        super().__init__(INVALID_CODE_MESSAGE)


class TenantMismatch(AccessError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Tenant not authorized"


class TooManyAttempts(AccessError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many attempts. Try again in a few minutes."


class SubscriptionRequired(AccessError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Action locked: an active subscription is required"


def access_error_response(exc: AccessError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def _handle_access_error(request: Request, exc: AccessError) -> JSONResponse:
    logger.info(
        "access error %s status=%s endpoint=%s %s",
        type(exc).__name__,
        exc.status_code,
        request.method,
        request.url.path,
    )
    return access_error_response(exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccessError, _handle_access_error)
