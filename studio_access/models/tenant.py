from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from studio_access.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    brand_color = Column(String(20), nullable=True)
    logo_url = Column(String, nullable=True)

    # Credenciais de integração; usadas apenas pelos serviços de armazenamento.
    dropbox_access_token = Column(Text, nullable=True)
    google_drive_refresh_token = Column(Text, nullable=True)

    subscription_status = Column(String(30), nullable=True)
    trial_ends_at = Column(DateTime, nullable=True)
    subscription_ends_at = Column(DateTime, nullable=True)
    subscription_overwrite = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
