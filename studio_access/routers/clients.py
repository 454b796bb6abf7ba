from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from studio_access.deps import get_tenant_scope, require_capability
from studio_access.models.client import Client
from studio_access.services.access_session import AccessSession
from studio_access.services.audit import AuditEvent, DatabaseAuditSink
from studio_access.services.subscription import ensure_subscription_active
from studio_access.services.tenant_scope import TenantScope

router = APIRouter(prefix="/api/tenant/clients", tags=["clients"])
logger = logging.getLogger(__name__)


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=160)
    business_name: Optional[str] = Field(default=None, max_length=160)
    email: Optional[EmailStr] = None
    avatar_url: Optional[str] = None


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    name: str
    business_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None


def _live_clients(scope: TenantScope):
    return scope.query(Client).filter(Client.deleted_at.is_(None))


@router.get("", response_model=List[ClientRead])
def list_clients(
    scope: TenantScope = Depends(get_tenant_scope),
    _session: AccessSession = Depends(require_capability("view_all_clients")),
):
    return _live_clients(scope).order_by(Client.name.asc()).all()


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    _session: AccessSession = Depends(require_capability("view_all_clients")),
):
    client = _live_clients(scope).filter(Client.id == client_id).first()
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


@router.post("", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
def create_client(
    payload: ClientCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    session: AccessSession = Depends(require_capability("manage_clients")),
):
    ensure_subscription_active(scope.db, scope.tenant_id)

    client = scope.add(
        Client(
            name=payload.name.strip(),
            business_name=payload.business_name,
            email=payload.email.lower() if payload.email else None,
            avatar_url=payload.avatar_url,
        )
    )
    scope.db.flush()
    DatabaseAuditSink(scope.db).record(
        AuditEvent(
            action="client_created",
            actor_user_id=session.user_id,
            tenant_id=scope.tenant_id,
            entity_type="client",
            entity_id=client.id,
        )
    )
    scope.db.commit()
    scope.db.refresh(client)
    return client


@router.delete("/{client_id}")
def delete_client(
    client_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    session: AccessSession = Depends(require_capability("manage_clients")),
):
    ensure_subscription_active(scope.db, scope.tenant_id)

    client = _live_clients(scope).filter(Client.id == client_id).first()
    if client is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    client.deleted_at = datetime.now(timezone.utc).replace(tzinfo=None)
    DatabaseAuditSink(scope.db).record(
        AuditEvent(
            action="client_deleted",
            actor_user_id=session.user_id,
            tenant_id=scope.tenant_id,
            entity_type="client",
            entity_id=client.id,
        )
    )
    scope.db.commit()
    return {"success": True}
