from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from studio_access.models.verification_token import VerificationToken

logger = logging.getLogger(__name__)

CODE_DIGITS = 6


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def build_identifier(email: str, discriminator: str) -> str:
    return f"{normalize_email(email)}:{(discriminator or '').strip()}"


def generate_code() -> str:
    # 100000..999999, never a leading zero
    return str(secrets.randbelow(9 * 10 ** (CODE_DIGITS - 1)) + 10 ** (CODE_DIGITS - 1))


def issue_code(
    db: Session,
    identifier: str,
    *,
    ttl_seconds: int,
    code: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VerificationToken:
    """Replace every code for ``identifier`` with a fresh one, in one transaction."""
    now = now or _now()
    token = VerificationToken(
        identifier=identifier,
        token=code or generate_code(),
        expires=now + timedelta(seconds=ttl_seconds),
        created_at=now,
    )
    try:
        replaced = (
            db.query(VerificationToken)
            .filter(VerificationToken.identifier == identifier)
            .delete(synchronize_session=False)
        )
        db.add(token)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("login code issued identifier_tenant=%s replaced=%s", identifier.rsplit(":", 1)[-1], replaced)
    return token


def consume_code(
    db: Session,
    identifier: str,
    code: str,
    *,
    now: Optional[datetime] = None,
) -> bool:
    """Delete the matching, unexpired code. Exactly one caller can get True per code."""
    submitted = (code or "").strip()
    if not submitted:
        return False

    now = now or _now()
    try:
        deleted = (
            db.query(VerificationToken)
            .filter(
                VerificationToken.identifier == identifier,
                VerificationToken.token == submitted,
                VerificationToken.expires >= now,
            )
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted == 1
