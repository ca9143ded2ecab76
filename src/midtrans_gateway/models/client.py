"""Billing client (customer) models."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from midtrans_gateway.db.base import Base


class Client(Base):
    """A billed customer holding a prepaid account balance."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=True)
    country = Column(String(3), nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    postcode = Column(String(32), nullable=True)
    currency = Column(String(3), nullable=False, default="IDR")
    balance = Column(Numeric(18, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    balance_entries = relationship(
        "ClientBalanceEntry",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="ClientBalanceEntry.created_at",
    )


class ClientBalanceEntry(Base):
    """Audit row written for every credit applied to a client balance."""

    __tablename__ = "client_balance_entries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True)
    amount = Column(Numeric(18, 2), nullable=False)
    description = Column(Text, nullable=False)
    metadata_json = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    client = relationship("Client", back_populates="balance_entries")


__all__ = ["Client", "ClientBalanceEntry"]
