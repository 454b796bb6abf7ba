from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import declared_attr


class TenantOwnedMixin:
    """Rows owned by exactly one tenant; TenantScope filters every query on these."""

    @declared_attr
    def tenant_id(cls):
        return Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)


def is_tenant_owned(model) -> bool:
    return isinstance(model, type) and issubclass(model, TenantOwnedMixin)
