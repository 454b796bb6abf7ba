"""Tenant-bound handle over a SQLAlchemy ``Session``.

``TenantScope`` is created once per request from the resolved session and is
the only way route code reaches tenant-owned tables. Reads are filtered by
``tenant_id`` explicitly, and while the scope is active the underlying
``Session`` also carries two hooks:

* ``do_orm_execute`` adds ``with_loader_criteria`` for every
  ``TenantOwnedMixin`` entity, so even a raw ``db.query(Client)`` issued on
  the same session only sees the active tenant's rows, and bulk
  ``Query.update()``/``Query.delete()`` only touch them;
* ``before_flush`` stamps new rows with the tenant id and refuses to write or
  delete rows of any other tenant.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Query, Session, with_loader_criteria

from studio_access.core.errors import TenantMismatch, Unauthorized
from studio_access.models.mixins import TenantOwnedMixin, is_tenant_owned
from studio_access.services.access_session import AccessSession, session_tenant_id

logger = logging.getLogger(__name__)

SCOPE_INFO_KEY = "studio_access.tenant_id"

T = TypeVar("T")


def _scope_orm_execute(execute_state: ORMExecuteState) -> None:
    tenant_id = execute_state.session.info.get(SCOPE_INFO_KEY)
    if tenant_id is None:
        return
    if execute_state.is_select:
        if execute_state.is_column_load or execute_state.is_relationship_load:
            return
    elif not (execute_state.is_update or execute_state.is_delete):
        return
    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            TenantOwnedMixin,
            lambda cls: cls.tenant_id == tenant_id,
            include_aliases=True,
        )
    )


def _guard_flush(session: Session, flush_context: Any, instances: Any) -> None:
    tenant_id = session.info.get(SCOPE_INFO_KEY)
    if tenant_id is None:
        return

    for obj in session.new:
        if isinstance(obj, TenantOwnedMixin):
            if obj.tenant_id is None:
                obj.tenant_id = tenant_id
            elif int(obj.tenant_id) != tenant_id:
                raise TenantMismatch()

    for obj in list(session.dirty) + list(session.deleted):
        if not isinstance(obj, TenantOwnedMixin):
            continue
        if obj.tenant_id is None or int(obj.tenant_id) != tenant_id:
            raise TenantMismatch()


def _bind(db: Session, tenant_id: int) -> None:
    active = db.info.get(SCOPE_INFO_KEY)
    if active is not None and active != tenant_id:
        logger.error("session already bound to another tenant active=%s requested=%s", active, tenant_id)
        raise TenantMismatch()

    db.info[SCOPE_INFO_KEY] = tenant_id
    if not event.contains(db, "do_orm_execute", _scope_orm_execute):
        event.listen(db, "do_orm_execute", _scope_orm_execute)
    if not event.contains(db, "before_flush", _guard_flush):
        event.listen(db, "before_flush", _guard_flush)


class TenantScope:
    def __init__(self, db: Session, session: Optional[AccessSession]) -> None:
        tenant_id = session_tenant_id(session)
        if session is None or tenant_id is None:
            raise Unauthorized("No tenant context for this session")

        self.db = db
        self.session = session
        self.tenant_id = int(tenant_id)
        _bind(db, self.tenant_id)

    def release(self) -> None:
        if self.db.info.get(SCOPE_INFO_KEY) == self.tenant_id:
            self.db.info.pop(SCOPE_INFO_KEY, None)

    def _require_owned(self, model: Type[Any]) -> None:
        if not is_tenant_owned(model):
            raise TypeError(f"{getattr(model, '__name__', model)!r} is not tenant-scoped")

    def ensure_tenant(self, tenant_id: Any) -> int:
        """Reject an explicit tenant id that is not the active one."""
        if tenant_id is None:
            return self.tenant_id
        try:
            requested = int(tenant_id)
        except (TypeError, ValueError):
            requested = None
        if requested != self.tenant_id:
            logger.warning(
                "Access denied (tenant_mismatch): user_id=%s tenant_id=%s requested_tenant_id=%s",
                self.session.user_id,
                self.tenant_id,
                tenant_id,
            )
            raise TenantMismatch()
        return self.tenant_id

    def query(self, model: Type[T]) -> Query:
        self._require_owned(model)
        return self.db.query(model).filter(model.tenant_id == self.tenant_id)

    def filter_by(self, model: Type[T], **criteria: Any) -> Query:
        if "tenant_id" in criteria:
            self.ensure_tenant(criteria.pop("tenant_id"))
        return self.query(model).filter_by(**criteria)

    def get(self, model: Type[T], entity_id: Any) -> Optional[T]:
        return self.query(model).filter(model.id == entity_id).first()

    def count(self, model: Type[T]) -> int:
        return self.query(model).count()

    def add(self, obj: T) -> T:
        self._require_owned(type(obj))
        if obj.tenant_id is None:
            obj.tenant_id = self.tenant_id
        else:
            self.ensure_tenant(obj.tenant_id)
        self.db.add(obj)
        return obj

    def add_all(self, objs: Iterable[T]) -> list[T]:
        return [self.add(obj) for obj in objs]

    def update(self, model: Type[T], entity_id: Any, values: Mapping[str, Any]) -> Optional[T]:
        changes = dict(values)
        if "id" in changes:
            raise ValueError(f"{model.__name__}.id cannot be changed")
        if "tenant_id" in changes:
            self.ensure_tenant(changes.pop("tenant_id"))
        obj = self.get(model, entity_id)
        if obj is None:
            return None
        for key, value in changes.items():
            if not hasattr(model, key):
                raise AttributeError(f"{model.__name__} has no attribute {key!r}")
            setattr(obj, key, value)
        return obj

    def delete(self, obj: Any) -> None:
        self._require_owned(type(obj))
        self.ensure_tenant(obj.tenant_id)
        self.db.delete(obj)

    def delete_by_id(self, model: Type[T], entity_id: Any) -> bool:
        obj = self.get(model, entity_id)
        if obj is None:
            return False
        self.db.delete(obj)
        return True
