"""Platform super-admin entry into a tenant.

The super-admin never gets a tenant session directly: a tenant-admin
membership is ensured for their own user in the target tenant and a short
single-use code is issued for it. Redeeming that code goes through the normal
login path, so the resulting session is an ordinary ``TenantAdmin``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from studio_access.core import config
from studio_access.core.errors import PermissionDenied, Unauthorized
from studio_access.models.membership import TenantMembership
from studio_access.models.tenant import Tenant
from studio_access.models.user import User
from studio_access.services.access_session import AccessSession, PlatformAdmin, Role
from studio_access.services.audit import AuditEvent, AuditSink
from studio_access.services.login_codes import build_identifier, generate_code, issue_code, normalize_email

logger = logging.getLogger(__name__)


class TenantNotFound(LookupError):
    pass


@dataclass(frozen=True)
class ImpersonationGrant:
    email: str
    membership_id: int
    code: str
    expires_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _ensure_admin_membership(db: Session, user: User, tenant: Tenant) -> TenantMembership:
    membership = (
        db.query(TenantMembership)
        .filter(TenantMembership.user_id == user.id, TenantMembership.tenant_id == tenant.id)
        .first()
    )
    if membership is None:
        membership = TenantMembership(
            user_id=user.id,
            tenant_id=tenant.id,
            role=Role.TENANT_ADMIN.value,
            permissions={},
            active=True,
        )
        db.add(membership)
        db.flush()
        logger.info("impersonation membership created tenant_id=%s membership_id=%s", tenant.id, membership.id)
        return membership

    if membership.role != Role.TENANT_ADMIN.value or not membership.active:
        logger.info(
            "impersonation membership promoted tenant_id=%s membership_id=%s previous_role=%s",
            tenant.id,
            membership.id,
            membership.role,
        )
        membership.role = Role.TENANT_ADMIN.value
        membership.client_id = None
        membership.active = True
        db.flush()
    return membership


def impersonate_tenant(
    db: Session,
    actor: Optional[AccessSession],
    target_tenant_id: int,
    audit_sink: AuditSink,
    now: Optional[datetime] = None,
) -> ImpersonationGrant:
    if actor is None:
        raise Unauthorized()
    if not isinstance(actor, PlatformAdmin):
        logger.warning("impersonation refused for non platform admin user_id=%s", actor.user_id)
        raise PermissionDenied()

    user = db.query(User).filter(User.id == actor.user_id).first()
    if user is None or not user.is_platform_admin:
        logger.warning("impersonation refused, platform flag revoked user_id=%s", actor.user_id)
        raise PermissionDenied()

    tenant = db.query(Tenant).filter(Tenant.id == target_tenant_id, Tenant.deleted_at.is_(None)).first()
    if tenant is None:
        raise TenantNotFound(f"Tenant {target_tenant_id} not found")

    now = now or _now()
    try:
        membership = _ensure_admin_membership(db, user, tenant)
        email = normalize_email(user.email)
        audit_sink.record(
            AuditEvent(
                action="impersonation_issued",
                actor_user_id=user.id,
                tenant_id=tenant.id,
                entity_type="tenant_membership",
                entity_id=membership.id,
                meta={"tenant_slug": tenant.slug},
                occurred_at=now,
            )
        )
    except Exception:
        db.rollback()
        raise

    # issue_code commits the membership and audit row together with the code.
    token = issue_code(
        db,
        build_identifier(email, str(membership.id)),
        ttl_seconds=config.IMPERSONATION_CODE_TTL_SECONDS,
        code=generate_code(),
        now=now,
    )
    return ImpersonationGrant(
        email=email,
        membership_id=membership.id,
        code=token.token,
        expires_at=token.expires,
    )
