import os

# Config is read at import time, so the test environment must be in place first.
os.environ["ENV"] = "test"
os.environ.setdefault("SESSION_SECRET", "test-session-secret-0123456789abcdef")
os.environ["MAIL_PROVIDER"] = "log"

from datetime import datetime, timedelta  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402

from studio_access.core.database import Base, create_db_engine, create_session_factory  # noqa: E402
from studio_access.models.agent import Agent  # noqa: E402
from studio_access.models.client import Client  # noqa: E402
from studio_access.models.membership import TenantMembership  # noqa: E402
from studio_access.models.studio import Booking, Gallery  # noqa: E402
from studio_access.models.team_member import TeamMember  # noqa: E402
from studio_access.models.tenant import Tenant  # noqa: E402
from studio_access.models.user import User  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_db_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield create_session_factory(engine=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def seed_studios(db) -> SimpleNamespace:
    """Two live studios, one deleted, and people with overlapping memberships."""
    future = datetime.utcnow() + timedelta(days=30)

    alpha = Tenant(id=1, slug="alpha", name="Alpha Studio", brand_color="#112233", subscription_status="active")
    beta = Tenant(id=2, slug="beta", name="Beta Studio", trial_ends_at=future)
    gone = Tenant(id=3, slug="gone", name="Gone Studio", deleted_at=datetime.utcnow())
    db.add_all([alpha, beta, gone])
    db.flush()

    alpha_client = Client(id=10, tenant_id=1, name="Acme Homes", business_name="Acme Realty", email="desk@acme.test")
    beta_client = Client(
        id=20,
        tenant_id=2,
        name="Alice",
        business_name="Alice Realty",
        email="alice@example.com",
        avatar_url="https://cdn.test/alice.png",
    )
    db.add_all([alpha_client, beta_client])
    db.flush()

    alice = User(id=1, email="alice@example.com", name="Alice")
    sam = User(id=2, email="sam@example.com", name="Sam")
    eddie = User(id=3, email="eddie@example.com", name="Eddie")
    root = User(id=4, email="root@studiio.test", name="Root", is_platform_admin=True)
    ghost = User(id=5, email="ghost@example.com", name="Ghost")
    agnes = User(id=6, email="agnes@acme.test", name="Agnes")
    db.add_all([alice, sam, eddie, root, ghost, agnes])
    db.flush()

    memberships = SimpleNamespace(
        alice_alpha=TenantMembership(id=100, user_id=1, tenant_id=1, role="tenant_admin", permissions={}),
        alice_beta=TenantMembership(id=101, user_id=1, tenant_id=2, role="client", client_id=20, permissions={}),
        sam_alpha=TenantMembership(
            id=102,
            user_id=2,
            tenant_id=1,
            role="staff",
            permissions={"view_reports": True, "view_calendar": False},
        ),
        eddie_alpha=TenantMembership(id=103, user_id=3, tenant_id=1, role="staff", permissions={}),
        ghost_alpha=TenantMembership(id=104, user_id=5, tenant_id=1, role="staff", permissions={}),
        sam_gone=TenantMembership(id=105, user_id=2, tenant_id=3, role="tenant_admin", permissions={}),
        agnes_alpha=TenantMembership(id=106, user_id=6, tenant_id=1, role="agent", client_id=10, permissions={}),
    )
    db.add_all(vars(memberships).values())

    db.add_all(
        [
            TeamMember(id=200, tenant_id=1, email="sam@example.com", display_name="Sam Shooter", role="photographer"),
            TeamMember(id=201, tenant_id=1, email="eddie@example.com", display_name="Eddie Edits", role="editor"),
            TeamMember(id=202, tenant_id=2, email="ghost@example.com", display_name="Ghost", role="photographer"),
            Agent(id=300, tenant_id=1, client_id=10, name="Agnes Agent", email="agnes@acme.test"),
            Booking(id=400, tenant_id=1, client_id=10, title="Alpha shoot"),
            Booking(id=401, tenant_id=2, client_id=20, title="Beta shoot"),
            Gallery(id=500, tenant_id=1, client_id=10, title="Alpha gallery"),
            Gallery(id=501, tenant_id=2, client_id=20, title="Beta gallery"),
        ]
    )
    db.commit()

    return SimpleNamespace(
        alpha=alpha,
        beta=beta,
        gone=gone,
        alice=alice,
        sam=sam,
        eddie=eddie,
        root=root,
        ghost=ghost,
        agnes=agnes,
        memberships=memberships,
    )


@pytest.fixture
def studio(db):
    return seed_studios(db)
