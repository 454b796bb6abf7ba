from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from studio_access.core.database import get_db
from studio_access.deps import get_access_session, get_mail_service
from studio_access.mail.service import MailService
from studio_access.services.access_session import AccessSession, describe_session
from studio_access.services.permissions import MODULES, can_access_module
from studio_access.services.session_resolver import list_workspaces, redeem_login_code, request_login_code
from studio_access.services.sessions import (
    build_session_cookie_options,
    clear_session_cookie,
    create_session_token,
    set_session_cookie,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


class TenantLookupPayload(BaseModel):
    email: EmailStr


class WorkspaceRead(BaseModel):
    id: str
    tenant_id: Optional[int] = None
    name: str
    slug: str
    logo_url: Optional[str] = None
    role: str


class TenantLookupResponse(BaseModel):
    tenants: List[WorkspaceRead]


class SendCodePayload(BaseModel):
    email: EmailStr
    tenant_id: Union[int, str]


class VerifyPayload(BaseModel):
    email: EmailStr
    tenant_id: Union[int, str]
    code: str = Field(..., min_length=1, max_length=12)


class SessionRead(BaseModel):
    user_id: int
    membership_id: Optional[int] = None
    tenant_id: Optional[int] = None
    tenant_slug: Optional[str] = None
    role: str
    client_id: Optional[int] = None
    agent_id: Optional[int] = None
    team_member_id: Optional[int] = None
    email: str
    name: Optional[str] = None
    modules: List[str] = []


def _session_read(session: AccessSession) -> dict:
    return {
        **describe_session(session),
        "modules": sorted(module for module in MODULES if can_access_module(session, module)),
    }


@router.post("/tenant-lookup", response_model=TenantLookupResponse)
def tenant_lookup(payload: TenantLookupPayload, db: Session = Depends(get_db)):
    workspaces = list_workspaces(db, payload.email)
    return {"tenants": [option.__dict__ for option in workspaces]}


@router.post("/send-code")
def send_code(
    payload: SendCodePayload,
    db: Session = Depends(get_db),
    mail_service: MailService = Depends(get_mail_service),
):
    # Same answer whether or not a code went out, so the endpoint can't be used to probe memberships.
    request_login_code(db, email=payload.email, discriminator=payload.tenant_id, mail_service=mail_service)
    return {"success": True}


@router.post("/verify", response_model=SessionRead)
def verify(
    payload: VerifyPayload,
    response: Response,
    request: Request,
    db: Session = Depends(get_db),
):
    session = redeem_login_code(db, email=payload.email, discriminator=payload.tenant_id, code=payload.code)

    cookie_options = build_session_cookie_options(request)
    logger.info(
        "[AUTH_COOKIE] setting studio_session domain=%s samesite=%s secure=%s",
        cookie_options.get("domain") or "host-only",
        cookie_options["samesite"],
        cookie_options["secure"],
    )
    set_session_cookie(response, create_session_token(session), request)
    return _session_read(session)


@router.post("/logout")
def logout(response: Response, request: Request):
    clear_session_cookie(response, request)
    return {"success": True}


@router.get("/me", response_model=SessionRead)
def me(session: AccessSession = Depends(get_access_session)):
    return _session_read(session)
