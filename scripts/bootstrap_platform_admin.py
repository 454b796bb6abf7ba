#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from studio_access.core.config import DATABASE_URL, DEV_BOOTSTRAP_ALLOW, IS_PROD  # noqa: E402
from studio_access.core.database import create_session_factory  # noqa: E402
from studio_access.services.platform_bootstrap import (  # noqa: E402
    ensure_access_tables,
    ensure_tenant_with_admin,
    upsert_platform_admin,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or promote the platform super-admin.")
    parser.add_argument("--email", required=True, help="Super-admin email")
    parser.add_argument("--name", default="Master Admin", help="Display name")
    parser.add_argument("--tenant-name", help="Also create this tenant with the super-admin as tenant admin")
    parser.add_argument("--tenant-slug", help="Slug for --tenant-name (derived from the name if omitted)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Run without DEV_BOOTSTRAP_ALLOW=1",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if not DEV_BOOTSTRAP_ALLOW and not args.force:
        print("Bootstrap disabled. Set DEV_BOOTSTRAP_ALLOW=1 or pass --force.")
        return 1
    if IS_PROD and not args.force:
        print("Refusing to bootstrap in production without --force.")
        return 1

    session_factory = create_session_factory(DATABASE_URL)
    try:
        ensure_access_tables(session_factory.kw["bind"])
    except RuntimeError as exc:
        print(str(exc))
        return 1

    db = session_factory()
    try:
        user, created = upsert_platform_admin(db, email=args.email, name=args.name)
        action = "created" if created else "updated"
        print(f"Platform admin {action}: id={user.id} email={user.email}")

        if args.tenant_name:
            tenant, tenant_created = ensure_tenant_with_admin(
                db,
                name=args.tenant_name,
                slug=args.tenant_slug or args.tenant_name,
                owner=user,
            )
            tenant_action = "created" if tenant_created else "reused"
            print(f"Tenant {tenant_action}: id={tenant.id} slug={tenant.slug}")
    except ValueError as exc:
        print(str(exc))
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
