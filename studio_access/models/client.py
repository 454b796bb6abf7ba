from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from studio_access.core.database import Base
from studio_access.models.mixins import TenantOwnedMixin


class Client(TenantOwnedMixin, Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(160), nullable=False)
    business_name = Column(String(160), nullable=True)
    email = Column(String, nullable=True, index=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
