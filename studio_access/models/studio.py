from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from studio_access.core.database import Base
from studio_access.models.mixins import TenantOwnedMixin


class Service(TenantOwnedMixin, Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(160), nullable=False)
    price_cents = Column(Integer, nullable=False, default=0)


class Booking(TenantOwnedMixin, Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    starts_at = Column(DateTime, nullable=True)
    status = Column(String(30), nullable=False, default="requested")
    created_at = Column(DateTime, default=datetime.utcnow)


class Gallery(TenantOwnedMixin, Base):
    __tablename__ = "galleries"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    title = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    deleted_at = Column(DateTime, nullable=True)


class Invoice(TenantOwnedMixin, Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=True, index=True)
    number = Column(String(40), nullable=False)
    total_cents = Column(Integer, nullable=False, default=0)
    status = Column(String(30), nullable=False, default="draft")
    created_at = Column(DateTime, default=datetime.utcnow)
