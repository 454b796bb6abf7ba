from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from studio_access.core.database import Base
from studio_access.models.mixins import TenantOwnedMixin


class TeamMember(TenantOwnedMixin, Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    display_name = Column(String(160), nullable=False)
    # photographer | editor | accounts
    role = Column(String(30), nullable=False, default="photographer")
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)
