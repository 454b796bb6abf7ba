"""Email + one-time code login, bound to one membership at a time.

A person may belong to several studios. The login form first lists the
workspaces for an email (``list_workspaces``), the user picks one, a code is
sent for that exact membership (``request_login_code``) and redeeming it
(``redeem_login_code``) yields a session for that membership only. The
``MASTER`` discriminator is the platform super-admin login; it skips the
membership lookup but uses the same code rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from studio_access.core import config
from studio_access.core.errors import InvalidOrExpiredCode, TooManyAttempts
from studio_access.mail.service import MailService
from studio_access.models.agent import Agent as AgentRecord
from studio_access.models.membership import TenantMembership
from studio_access.models.team_member import TeamMember
from studio_access.models.user import User
from studio_access.services.access_session import (
    AccessSession,
    Agent,
    Client,
    Editor,
    MembershipSession,
    PlatformAdmin,
    Role,
    Staff,
    TenantAdmin,
)
from studio_access.services.audit import log_audit_action
from studio_access.services.code_attempts import check_code_lock, clear_code_attempts, register_failed_code
from studio_access.services.login_codes import (
    build_identifier,
    consume_code,
    generate_code,
    issue_code,
    normalize_email,
)

logger = logging.getLogger(__name__)

MASTER = config.MASTER_DISCRIMINATOR
Target = Union[int, str]


@dataclass
class WorkspaceOption:
    id: str
    tenant_id: Optional[int]
    name: str
    slug: str
    logo_url: Optional[str]
    role: str


def parse_discriminator(discriminator: Any) -> Optional[Target]:
    raw = str(discriminator if discriminator is not None else "").strip()
    if raw == MASTER:
        return MASTER
    if raw.isdigit():
        return int(raw)
    return None


def _find_user(db: Session, email: str) -> Optional[User]:
    if not email:
        return None
    return db.query(User).filter(func.lower(User.email) == email).first()


def _find_team_member(db: Session, tenant_id: int, email: str) -> Optional[TeamMember]:
    return (
        db.query(TeamMember)
        .filter(
            TeamMember.tenant_id == tenant_id,
            func.lower(TeamMember.email) == email,
            TeamMember.deleted_at.is_(None),
        )
        .first()
    )


def _find_agent(db: Session, membership: TenantMembership, email: str) -> Optional[AgentRecord]:
    if membership.client_id is None:
        return None
    return (
        db.query(AgentRecord)
        .filter(
            AgentRecord.tenant_id == membership.tenant_id,
            AgentRecord.client_id == membership.client_id,
            func.lower(AgentRecord.email) == email,
            AgentRecord.deleted_at.is_(None),
        )
        .first()
    )


def _bool_flags(raw: Any) -> Dict[str, bool]:
    if not isinstance(raw, dict):
        return {}
    return {str(key): value for key, value in raw.items() if isinstance(value, bool)}


def build_membership_session(
    db: Session,
    user: User,
    membership: Optional[TenantMembership],
) -> Optional[MembershipSession]:
    """Turn a membership row into its session variant, or None if it must not log in."""
    if membership is None or not membership.active or membership.user_id != user.id:
        return None

    tenant = membership.tenant
    if tenant is None or tenant.is_deleted:
        return None

    email = normalize_email(user.email)
    base = {
        "user_id": user.id,
        "email": email,
        "display_name": user.name,
        "membership_id": membership.id,
        "tenant_id": membership.tenant_id,
        "tenant_slug": tenant.slug,
        "permissions": _bool_flags(membership.permissions),
    }
    role = membership.role

    if role == Role.CLIENT.value:
        return Client(**base, client_id=membership.client_id)

    if role == Role.AGENT.value:
        agent = _find_agent(db, membership, email)
        if agent is not None:
            base["display_name"] = agent.name
        return Agent(**base, client_id=membership.client_id, agent_id=agent.id if agent else None)

    if role in {Role.TENANT_ADMIN.value, Role.STAFF.value, Role.EDITOR.value}:
        member = _find_team_member(db, membership.tenant_id, email)
        if member is not None:
            base["display_name"] = member.display_name
        team_member_id = member.id if member else None

        if role == Role.TENANT_ADMIN.value:
            # An admin that also sits on the roster is never downgraded to its roster role.
            return TenantAdmin(**base, team_member_id=team_member_id)
        if member is None:
            return None
        if role == Role.EDITOR.value or member.role == "editor":
            return Editor(**base, team_member_id=team_member_id)
        return Staff(**base, team_member_id=team_member_id)

    logger.warning("membership with unknown role membership_id=%s role=%s", membership.id, role)
    return None


def _resolve_target(db: Session, email: str, target: Target) -> Optional[AccessSession]:
    user = _find_user(db, email)
    if user is None:
        return None

    if target == MASTER:
        if not user.is_platform_admin:
            return None
        return PlatformAdmin(user_id=user.id, email=normalize_email(user.email), display_name=user.name)

    membership = (
        db.query(TenantMembership)
        .filter(TenantMembership.id == target, TenantMembership.user_id == user.id)
        .first()
    )
    return build_membership_session(db, user, membership)


def list_workspaces(db: Session, email: str) -> List[WorkspaceOption]:
    normalized_email = normalize_email(email)
    user = _find_user(db, normalized_email)
    if user is None:
        return []

    options: List[WorkspaceOption] = []
    if user.is_platform_admin:
        options.append(
            WorkspaceOption(
                id=MASTER,
                tenant_id=None,
                name=f"{config.PLATFORM_NAME} Master Admin",
                slug="master",
                logo_url=None,
                role=Role.PLATFORM_ADMIN.value,
            )
        )

    memberships = (
        db.query(TenantMembership)
        .filter(TenantMembership.user_id == user.id)
        .order_by(TenantMembership.id.asc())
        .all()
    )
    for membership in memberships:
        if build_membership_session(db, user, membership) is None:
            continue

        tenant = membership.tenant
        client = membership.client
        is_customer = membership.role in {Role.AGENT.value, Role.CLIENT.value}
        if is_customer and client is not None:
            name = client.business_name or client.name
            logo_url = client.avatar_url or tenant.logo_url
        else:
            name = tenant.name
            logo_url = tenant.logo_url

        options.append(
            WorkspaceOption(
                id=str(membership.id),
                tenant_id=tenant.id,
                name=name,
                slug=tenant.slug,
                logo_url=logo_url,
                role=membership.role,
            )
        )
    return options


def request_login_code(
    db: Session,
    *,
    email: str,
    discriminator: Any,
    mail_service: MailService,
    now: Optional[datetime] = None,
) -> bool:
    """Issue and send a code. Returns False (and sends nothing) for an invalid target."""
    normalized_email = normalize_email(email)
    target = parse_discriminator(discriminator)
    if not normalized_email or target is None:
        return False

    session = _resolve_target(db, normalized_email, target)
    if session is None:
        logger.warning("login code requested for unavailable workspace discriminator=%s", target)
        return False

    identifier = build_identifier(normalized_email, str(target))
    code = config.DEV_FIXED_LOGIN_CODE or generate_code()
    issue_code(db, identifier, ttl_seconds=config.LOGIN_CODE_TTL_SECONDS, code=code, now=now)

    tenant = None
    if isinstance(session, MembershipSession):
        membership = db.query(TenantMembership).filter(TenantMembership.id == session.membership_id).first()
        tenant = membership.tenant if membership else None
    mail_service.send_login_code(email=normalized_email, code=code, tenant=tenant)
    logger.info("login code sent tenant_id=%s", getattr(tenant, "id", MASTER))
    return True


def redeem_login_code(
    db: Session,
    *,
    email: str,
    discriminator: Any,
    code: str,
    now: Optional[datetime] = None,
) -> AccessSession:
    """Consume the code and return the session for exactly the chosen membership."""
    normalized_email = normalize_email(email)
    target = parse_discriminator(discriminator)
    if not normalized_email or target is None:
        raise InvalidOrExpiredCode()

    identifier = build_identifier(normalized_email, str(target))
    locked, _ = check_code_lock(db, identifier, now)
    if locked:
        logger.warning("code redemption locked discriminator=%s", target)
        raise TooManyAttempts()

    if not consume_code(db, identifier, code, now=now):
        _, locked_after = register_failed_code(db, identifier, now)
        db.commit()
        logger.warning("code redemption failed discriminator=%s locked=%s", target, locked_after)
        if locked_after:
            raise TooManyAttempts()
        raise InvalidOrExpiredCode()

    # The code is gone from here on, so a failed lookup cannot be retried with it.
    session = _resolve_target(db, normalized_email, target)
    if session is None:
        logger.warning("code redeemed for unavailable workspace discriminator=%s", target)
        raise InvalidOrExpiredCode()

    clear_code_attempts(db, identifier)
    if isinstance(session, MembershipSession):
        log_audit_action(
            db,
            tenant_id=session.tenant_id,
            user_id=session.user_id,
            action="login_success",
            entity_type="tenant_membership",
            entity_id=session.membership_id,
            meta={"role": session.role.value},
        )
    else:
        log_audit_action(
            db,
            tenant_id=None,
            user_id=session.user_id,
            action="platform_login_success",
            entity_type="user",
            entity_id=session.user_id,
        )
    db.commit()
    return session


def load_session_from_claims(db: Session, claims: Dict[str, Any]) -> Optional[AccessSession]:
    """Rebuild the session from cookie claims, re-checking the membership against the database."""
    try:
        user_id = int(claims.get("user_id"))
    except (TypeError, ValueError):
        return None

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        return None

    role = claims.get("role")
    if role == Role.PLATFORM_ADMIN.value:
        if not user.is_platform_admin:
            return None
        return PlatformAdmin(user_id=user.id, email=normalize_email(user.email), display_name=user.name)

    try:
        membership_id = int(claims.get("membership_id"))
        tenant_id = int(claims.get("tenant_id"))
    except (TypeError, ValueError):
        return None

    membership = (
        db.query(TenantMembership)
        .filter(TenantMembership.id == membership_id, TenantMembership.user_id == user.id)
        .first()
    )
    session = build_membership_session(db, user, membership)
    if session is None:
        return None
    if session.tenant_id != tenant_id or session.role.value != role:
        logger.warning(
            "session claims no longer match membership membership_id=%s claimed_role=%s role=%s",
            membership_id,
            role,
            session.role.value,
        )
        return None
    return session
