from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from studio_access.core.errors import SubscriptionRequired
from studio_access.models.tenant import Tenant

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = {"active", "trialing"}


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_subscription_active(tenant: Optional[Tenant], now: Optional[datetime] = None) -> bool:
    if tenant is None:
        return False
    now = now or _now()

    if tenant.subscription_overwrite:
        return True
    if (tenant.subscription_status or "").lower() in ACTIVE_STATUSES:
        return True
    if tenant.trial_ends_at is not None and tenant.trial_ends_at > now:
        return True
    # Cancelled plans stay usable until the paid period runs out.
    if tenant.subscription_ends_at is not None and tenant.subscription_ends_at > now:
        return True
    return False


def ensure_subscription_active(db: Session, tenant_id: int, now: Optional[datetime] = None) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
    if not is_subscription_active(tenant, now):
        logger.warning("Action locked (subscription): tenant_id=%s", tenant_id)
        raise SubscriptionRequired()
    return tenant
