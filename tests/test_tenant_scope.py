import pytest

from studio_access.core.errors import TenantMismatch, Unauthorized
from studio_access.models.client import Client
from studio_access.models.studio import Booking, Gallery
from studio_access.models.user import User
from studio_access.services.access_session import PlatformAdmin, Staff, TenantAdmin
from studio_access.services.tenant_scope import SCOPE_INFO_KEY, TenantScope


def _admin(tenant_id: int = 1) -> TenantAdmin:
    return TenantAdmin(
        user_id=1,
        email="alice@example.com",
        display_name="Alice",
        membership_id=100,
        tenant_id=tenant_id,
        tenant_slug="alpha",
    )


def test_scope_requires_a_tenant_session(db, studio):
    with pytest.raises(Unauthorized):
        TenantScope(db, None)

    with pytest.raises(Unauthorized):
        TenantScope(db, PlatformAdmin(user_id=4, email="root@studiio.test", display_name="Root"))


def test_fetch_by_id_of_other_tenant_row_returns_nothing(db, studio):
    scope = TenantScope(db, _admin())

    assert scope.get(Booking, 401) is None
    assert scope.get(Gallery, 501) is None
    assert scope.get(Booking, 400).title == "Alpha shoot"


def test_listing_only_returns_active_tenant_rows(db, studio):
    scope = TenantScope(db, _admin())

    assert [row.id for row in scope.query(Gallery).all()] == [500]
    assert scope.count(Booking) == 1
    assert scope.filter_by(Client, name="Alice").all() == []


def test_raw_session_queries_are_filtered_while_scope_is_bound(db, studio):
    db.expunge_all()
    scope = TenantScope(db, _admin())

    assert {row.tenant_id for row in db.query(Booking).all()} == {1}
    assert db.query(Client).filter(Client.id == 20).first() is None

    scope.release()
    assert {row.tenant_id for row in db.query(Booking).all()} == {1, 2}


def test_explicit_foreign_tenant_filter_is_rejected(db, studio):
    scope = TenantScope(db, _admin())

    with pytest.raises(TenantMismatch):
        scope.filter_by(Booking, tenant_id=2)

    assert scope.filter_by(Booking, tenant_id=1).count() == 1


def test_add_stamps_active_tenant_and_rejects_foreign_rows(db, studio):
    scope = TenantScope(db, _admin())

    booking = scope.add(Booking(title="New shoot"))
    db.commit()
    assert booking.tenant_id == 1

    with pytest.raises(TenantMismatch):
        scope.add(Booking(title="Smuggled", tenant_id=2))


def test_flush_guard_blocks_rows_written_around_the_scope(db, studio):
    TenantScope(db, _admin())

    db.add(Booking(title="Direct write", tenant_id=2))
    with pytest.raises(TenantMismatch):
        db.flush()
    db.rollback()

    db.add(Booking(title="Unstamped"))
    db.flush()
    assert db.query(Booking).filter(Booking.title == "Unstamped").one().tenant_id == 1


def test_moving_a_row_to_another_tenant_is_rejected(db, studio):
    scope = TenantScope(db, _admin())
    booking = scope.get(Booking, 400)

    booking.tenant_id = 2
    with pytest.raises(TenantMismatch):
        db.flush()
    db.rollback()

    with pytest.raises(TenantMismatch):
        scope.update(Booking, 400, {"tenant_id": 2})


def test_update_and_delete_only_touch_own_rows(db, studio):
    scope = TenantScope(db, _admin())

    assert scope.update(Booking, 401, {"title": "Hijacked"}) is None
    assert scope.delete_by_id(Gallery, 501) is False

    updated = scope.update(Booking, 400, {"title": "Renamed"})
    assert updated.title == "Renamed"
    assert scope.delete_by_id(Gallery, 500) is True
    db.commit()

    scope.release()
    assert db.query(Booking).filter(Booking.id == 401).one().title == "Beta shoot"
    assert db.query(Gallery).filter(Gallery.id == 501).count() == 1


def test_non_tenant_models_are_refused(db, studio):
    scope = TenantScope(db, _admin())

    with pytest.raises(TypeError):
        scope.query(User)


def test_session_cannot_be_rebound_to_another_tenant(db, studio):
    TenantScope(db, _admin(tenant_id=1))
    staff_beta = Staff(
        user_id=5,
        email="ghost@example.com",
        display_name="Ghost",
        membership_id=999,
        tenant_id=2,
        tenant_slug="beta",
    )

    with pytest.raises(TenantMismatch):
        TenantScope(db, staff_beta)

    assert db.info[SCOPE_INFO_KEY] == 1


def test_add_all_stamps_every_row(db, studio):
    scope = TenantScope(db, _admin())

    rows = scope.add_all([Gallery(title="One"), Gallery(title="Two", tenant_id=1)])
    db.commit()

    assert {row.tenant_id for row in rows} == {1}
    assert scope.count(Gallery) == 3


def test_bulk_update_and_delete_skip_other_tenant_rows(db, studio, session_factory):
    scope = TenantScope(db, _admin())

    updated = (
        scope.db.query(Booking)
        .filter(Booking.id == 401)
        .update({"title": "Hijacked"}, synchronize_session=False)
    )
    deleted = scope.db.query(Booking).filter(Booking.id == 401).delete(synchronize_session=False)
    own = scope.db.query(Booking).filter(Booking.id == 400).update({"title": "Renamed"}, synchronize_session=False)
    db.commit()

    assert (updated, deleted, own) == (0, 0, 1)
    other = session_factory()
    try:
        assert other.query(Booking).filter(Booking.id == 401).one().title == "Beta shoot"
        assert other.query(Booking).filter(Booking.id == 400).one().title == "Renamed"
    finally:
        other.close()


def test_clearing_tenant_on_loaded_row_is_rejected(db, studio):
    scope = TenantScope(db, _admin())
    booking = scope.get(Booking, 400)

    booking.tenant_id = None
    with pytest.raises(TenantMismatch):
        db.flush()
    db.rollback()


def test_update_refuses_primary_key_changes(db, studio):
    scope = TenantScope(db, _admin())

    with pytest.raises(ValueError):
        scope.update(Booking, 400, {"id": 999})

    assert scope.get(Booking, 400).title == "Alpha shoot"
    assert scope.get(Booking, 999) is None
