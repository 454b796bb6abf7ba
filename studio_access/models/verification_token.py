from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from studio_access.core.database import Base


class VerificationToken(Base):
    __tablename__ = "verification_tokens"

    id = Column(Integer, primary_key=True, index=True)
    # "<email normalizado>:<membership id | MASTER>"
    identifier = Column(String, nullable=False, unique=True, index=True)
    token = Column(String(12), nullable=False)
    expires = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
