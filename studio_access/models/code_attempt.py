from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from studio_access.core.database import Base


class CodeAttempt(Base):
    __tablename__ = "code_attempts"

    id = Column(Integer, primary_key=True, index=True)
    identifier = Column(String, nullable=False, unique=True, index=True)
    failed_count = Column(Integer, nullable=False, default=0)
    first_failed_at = Column(DateTime, nullable=True)
    last_failed_at = Column(DateTime, nullable=True)
    locked_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
