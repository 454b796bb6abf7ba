from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from studio_access.core.database import Base
from studio_access.models.mixins import TenantOwnedMixin


class Agent(TenantOwnedMixin, Base):
    __tablename__ = "agents"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    name = Column(String(160), nullable=False)
    email = Column(String, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
