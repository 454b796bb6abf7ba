"""Session variants issued at login.

Each role gets its own frozen dataclass carrying only the fields that make
sense for it, so callers dispatch on the type instead of probing optional
attributes. ``PlatformAdmin`` is the super-admin session: it has no tenant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Union


class Role(str, Enum):
    TENANT_ADMIN = "tenant_admin"
    STAFF = "staff"
    EDITOR = "editor"
    AGENT = "agent"
    CLIENT = "client"
    PLATFORM_ADMIN = "platform_admin"


@dataclass(frozen=True)
class MembershipSession:
    user_id: int
    email: str
    display_name: str | None
    membership_id: int
    tenant_id: int
    tenant_slug: str
    permissions: Mapping[str, bool] = field(default_factory=dict, compare=False)

    role = None  # type: Role | None


@dataclass(frozen=True)
class TenantAdmin(MembershipSession):
    team_member_id: int | None = None

    role = Role.TENANT_ADMIN


@dataclass(frozen=True)
class Staff(MembershipSession):
    team_member_id: int | None = None

    role = Role.STAFF


@dataclass(frozen=True)
class Editor(MembershipSession):
    team_member_id: int | None = None

    role = Role.EDITOR


@dataclass(frozen=True)
class Agent(MembershipSession):
    client_id: int | None = None
    agent_id: int | None = None

    role = Role.AGENT


@dataclass(frozen=True)
class Client(MembershipSession):
    client_id: int | None = None

    role = Role.CLIENT


@dataclass(frozen=True)
class PlatformAdmin:
    user_id: int
    email: str
    display_name: str | None

    role = Role.PLATFORM_ADMIN


AccessSession = Union[TenantAdmin, Staff, Editor, Agent, Client, PlatformAdmin]


def session_tenant_id(session: AccessSession | None) -> int | None:
    if isinstance(session, MembershipSession):
        return session.tenant_id
    return None


def session_client_id(session: AccessSession) -> int | None:
    if isinstance(session, (Agent, Client)):
        return session.client_id
    return None


def token_claims(session: AccessSession) -> Dict[str, Any]:
    """Minimal claims stored in the signed cookie; everything else is reloaded per request."""
    if isinstance(session, PlatformAdmin):
        return {
            "user_id": session.user_id,
            "membership_id": None,
            "tenant_id": None,
            "role": session.role.value,
            "client_id": None,
        }
    return {
        "user_id": session.user_id,
        "membership_id": session.membership_id,
        "tenant_id": session.tenant_id,
        "role": session.role.value,
        "client_id": session_client_id(session),
    }


def describe_session(session: AccessSession) -> Dict[str, Any]:
    payload = {
        **token_claims(session),
        "email": session.email,
        "name": session.display_name,
    }
    if isinstance(session, MembershipSession):
        payload["tenant_slug"] = session.tenant_slug
    if isinstance(session, Agent):
        payload["agent_id"] = session.agent_id
    if isinstance(session, (TenantAdmin, Staff, Editor)):
        payload["team_member_id"] = session.team_member_id
    return payload
