from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from studio_access.models.code_attempt import CodeAttempt

MAX_FAILED_ATTEMPTS = 8
ATTEMPT_WINDOW = timedelta(minutes=10)
LOCK_DURATION = timedelta(minutes=10)


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_code_attempt(db: Session, identifier: str) -> Optional[CodeAttempt]:
    return db.query(CodeAttempt).filter(CodeAttempt.identifier == identifier).first()


def is_locked(attempt: CodeAttempt, now: Optional[datetime] = None) -> bool:
    now = now or _now()
    if attempt.locked_until is None:
        return False
    return attempt.locked_until > now


def check_code_lock(db: Session, identifier: str, now: Optional[datetime] = None) -> Tuple[bool, Optional[datetime]]:
    attempt = get_code_attempt(db, identifier)
    if attempt and is_locked(attempt, now):
        return True, attempt.locked_until
    return False, None


def register_failed_code(
    db: Session, identifier: str, now: Optional[datetime] = None
) -> Tuple[CodeAttempt, bool]:
    now = now or _now()
    attempt = get_code_attempt(db, identifier)
    if attempt is None:
        attempt = CodeAttempt(
            identifier=identifier,
            failed_count=1,
            first_failed_at=now,
            last_failed_at=now,
        )
        db.add(attempt)
    else:
        if attempt.first_failed_at is None or (now - attempt.first_failed_at) > ATTEMPT_WINDOW:
            attempt.failed_count = 0
            attempt.first_failed_at = now
            attempt.locked_until = None
        attempt.failed_count += 1
        attempt.last_failed_at = now

    locked = False
    if attempt.failed_count >= MAX_FAILED_ATTEMPTS:
        attempt.locked_until = now + LOCK_DURATION
        locked = True

    return attempt, locked


def clear_code_attempts(db: Session, identifier: str) -> None:
    attempt = get_code_attempt(db, identifier)
    if attempt is None:
        return
    db.delete(attempt)
