"""Single decision point for "may this session do X".

Resolution order, applied the same everywhere:

1. unknown capability -> denied, whatever the role;
2. tenant admin (and the platform admin) -> granted;
3. capability in the role's defaults -> granted;
4. membership flag set to ``True`` -> granted;
5. otherwise denied.

Flags only add capabilities; a ``False`` flag never removes a role default.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Optional

from studio_access.core.errors import PermissionDenied
from studio_access.services.access_session import (
    AccessSession,
    Agent,
    Client,
    Editor,
    PlatformAdmin,
    Role,
    Staff,
    TenantAdmin,
    session_tenant_id,
)

logger = logging.getLogger(__name__)

CAPABILITIES: FrozenSet[str] = frozenset(
    {
        "view_calendar",
        "view_bookings",
        "view_all_bookings",
        "place_bookings",
        "view_all_galleries",
        "manage_galleries",
        "delete_gallery",
        "download_high_res",
        "view_all_agency_galleries",
        "edit_requests",
        "view_invoices",
        "manage_services",
        "manage_team",
        "manage_clients",
        "view_all_clients",
        "view_reports",
    }
)

ROLE_DEFAULTS: Dict[Role, FrozenSet[str]] = {
    Role.STAFF: frozenset(
        {
            "view_calendar",
            "view_bookings",
            "view_all_bookings",
            "place_bookings",
            "view_all_galleries",
            "manage_galleries",
            "download_high_res",
            "view_all_agency_galleries",
            "edit_requests",
        }
    ),
    Role.EDITOR: frozenset(
        {
            "view_bookings",
            "view_all_galleries",
            "manage_galleries",
            "download_high_res",
            "view_all_agency_galleries",
            "edit_requests",
        }
    ),
    # Customer portal: everything beyond seeing their own work is opt-in per membership.
    Role.CLIENT: frozenset({"view_calendar", "view_bookings"}),
    Role.AGENT: frozenset({"view_calendar", "view_bookings"}),
}

MODULE_CAPABILITIES: Dict[str, Optional[str]] = {
    "calendar": "view_calendar",
    "bookings": "view_bookings",
    "galleries": None,
    "edits": "edit_requests",
    "clients": "manage_clients",
    "invoices": "view_invoices",
    "services": "manage_services",
    "team": "manage_team",
    "reports": "view_reports",
}

MODULES: FrozenSet[str] = frozenset(MODULE_CAPABILITIES) | {"dashboard", "settings", "agents", "tenants"}


def is_known_capability(capability: str) -> bool:
    return capability in CAPABILITIES


def can_perform(session: Optional[AccessSession], capability: str) -> bool:
    if session is None or not is_known_capability(capability):
        return False

    if isinstance(session, (TenantAdmin, PlatformAdmin)):
        return True

    if isinstance(session, (Staff, Editor, Agent, Client)):
        if capability in ROLE_DEFAULTS.get(session.role, frozenset()):
            return True
        return session.permissions.get(capability) is True

    return False


def ensure_can_perform(session: Optional[AccessSession], capability: str) -> None:
    if can_perform(session, capability):
        return
    logger.warning(
        "Access denied (capability): user_id=%s role=%s tenant_id=%s capability=%s",
        getattr(session, "user_id", None),
        getattr(getattr(session, "role", None), "value", None),
        session_tenant_id(session),
        capability,
    )
    raise PermissionDenied()


def can_access_module(session: Optional[AccessSession], module: str) -> bool:
    """Navigation guard for dashboard modules."""
    if session is None or module not in MODULES:
        return False

    if isinstance(session, PlatformAdmin):
        return module in {"tenants", "dashboard"}
    if module == "tenants":
        return False
    if isinstance(session, TenantAdmin):
        return True

    if module == "dashboard":
        return not isinstance(session, Editor)
    if module == "galleries":
        # Customers always see their own galleries; staff need the roster-wide view.
        return isinstance(session, (Agent, Client)) or can_perform(session, "view_all_galleries")
    if module == "agents":
        return isinstance(session, Client)
    if module == "settings":
        return False
    return can_perform(session, MODULE_CAPABILITIES[module])
