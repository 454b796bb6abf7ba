from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from studio_access.core.database import get_db
from studio_access.deps import get_audit_sink, require_platform_admin
from studio_access.services.access_session import PlatformAdmin
from studio_access.services.audit import AuditSink
from studio_access.services.impersonation import TenantNotFound, impersonate_tenant

router = APIRouter(prefix="/api/master", tags=["master"])


class ImpersonatePayload(BaseModel):
    tenant_id: int


class ImpersonateResponse(BaseModel):
    success: bool
    email: str
    membership_id: int
    code: str
    expires_at: datetime


@router.post("/impersonate", response_model=ImpersonateResponse)
def impersonate(
    payload: ImpersonatePayload,
    db: Session = Depends(get_db),
    actor: PlatformAdmin = Depends(require_platform_admin),
    audit_sink: AuditSink = Depends(get_audit_sink),
):
    try:
        grant = impersonate_tenant(db, actor, payload.tenant_id, audit_sink)
    except TenantNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found") from exc

    return {
        "success": True,
        "email": grant.email,
        "membership_id": grant.membership_id,
        "code": grant.code,
        "expires_at": grant.expires_at,
    }
