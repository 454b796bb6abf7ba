from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol

from sqlalchemy.orm import Session

from studio_access.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit_action(
    db: Session,
    *,
    tenant_id: Optional[int],
    user_id: int,
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    meta: Optional[Mapping[str, Any]] = None,
    created_at: Optional[datetime] = None,
) -> AuditLog:
    entry = AuditLog(
        tenant_id=tenant_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=json.dumps(meta, default=str) if meta else None,
    )
    if created_at is not None:
        entry.created_at = created_at
    db.add(entry)
    return entry


@dataclass(frozen=True)
class AuditEvent:
    action: str
    actor_user_id: int
    tenant_id: Optional[int]
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        ...


class DatabaseAuditSink:
    """Writes events to ``audit_log`` inside the caller's transaction."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def record(self, event: AuditEvent) -> None:
        log_audit_action(
            self.db,
            tenant_id=event.tenant_id,
            user_id=event.actor_user_id,
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            meta=dict(event.meta),
            created_at=event.occurred_at,
        )
        logger.info(
            "audit action=%s actor=%s tenant_id=%s entity=%s:%s",
            event.action,
            event.actor_user_id,
            event.tenant_id,
            event.entity_type,
            event.entity_id,
        )
