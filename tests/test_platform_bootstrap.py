import pytest
from sqlalchemy import create_engine

from studio_access.models.membership import TenantMembership
from studio_access.services.platform_bootstrap import (
    ensure_access_tables,
    ensure_tenant_with_admin,
    upsert_platform_admin,
)
from studio_access.services.session_resolver import list_workspaces


def test_upsert_promotes_existing_user(db, studio):
    user, created = upsert_platform_admin(db, email=" Sam@Example.com ", name="Sam")

    assert created is False
    assert user.id == 2
    assert user.is_platform_admin is True


def test_upsert_creates_new_platform_admin(db):
    user, created = upsert_platform_admin(db, email="team@studiio.test", name="Master Admin")

    assert created is True
    assert user.email == "team@studiio.test"
    assert [option.id for option in list_workspaces(db, "team@studiio.test")] == ["MASTER"]

    with pytest.raises(ValueError):
        upsert_platform_admin(db, email="  ", name="Nobody")


def test_first_tenant_gets_admin_membership_once(db):
    user, _ = upsert_platform_admin(db, email="team@studiio.test", name="Master Admin")

    tenant, created = ensure_tenant_with_admin(db, name="Harbour Photo", slug="Harbour Photo", owner=user)
    again, created_again = ensure_tenant_with_admin(db, name="Harbour Photo", slug="harbour-photo", owner=user)

    assert created is True
    assert created_again is False
    assert tenant.slug == "harbour-photo"
    assert again.id == tenant.id
    memberships = db.query(TenantMembership).filter(TenantMembership.user_id == user.id).all()
    assert [(row.tenant_id, row.role) for row in memberships] == [(tenant.id, "tenant_admin")]


def test_missing_tables_are_reported(session_factory):
    with pytest.raises(RuntimeError):
        ensure_access_tables(create_engine("sqlite+pysqlite:///:memory:"))

    ensure_access_tables(session_factory.kw["bind"])
