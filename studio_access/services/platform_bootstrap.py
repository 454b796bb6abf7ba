from __future__ import annotations

from sqlalchemy import func, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from studio_access.models.membership import TenantMembership
from studio_access.models.tenant import Tenant
from studio_access.models.user import User
from studio_access.services.access_session import Role
from studio_access.services.login_codes import normalize_email
from studio_access.utils.slug import normalize_slug

REQUIRED_TABLES = ("users", "tenants", "tenant_memberships")


def ensure_access_tables(engine: Engine) -> None:
    inspector = inspect(engine)
    missing = [table for table in REQUIRED_TABLES if not inspector.has_table(table)]
    if missing:
        raise RuntimeError(f"Tables not found: {', '.join(missing)}. Run `alembic upgrade head` first.")


def upsert_platform_admin(db: Session, *, email: str, name: str) -> tuple[User, bool]:
    normalized_email = normalize_email(email)
    if not normalized_email:
        raise ValueError("Email is required.")

    existing = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if existing:
        existing.is_platform_admin = True
        existing.name = name or existing.name
        db.commit()
        db.refresh(existing)
        return existing, False

    user = User(email=normalized_email, name=name, is_platform_admin=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def ensure_tenant_with_admin(db: Session, *, name: str, slug: str, owner: User) -> tuple[Tenant, bool]:
    normalized_slug = normalize_slug(slug or name)
    if not normalized_slug:
        raise ValueError("Tenant slug is required.")

    tenant = db.query(Tenant).filter(Tenant.slug == normalized_slug).first()
    created = tenant is None
    if tenant is None:
        tenant = Tenant(slug=normalized_slug, name=name or normalized_slug, subscription_status="trialing")
        db.add(tenant)
        db.flush()

    membership = (
        db.query(TenantMembership)
        .filter(TenantMembership.user_id == owner.id, TenantMembership.tenant_id == tenant.id)
        .first()
    )
    if membership is None:
        db.add(
            TenantMembership(
                user_id=owner.id,
                tenant_id=tenant.id,
                role=Role.TENANT_ADMIN.value,
                permissions={},
                active=True,
            )
        )
    db.commit()
    db.refresh(tenant)
    return tenant, created
