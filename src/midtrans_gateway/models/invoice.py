"""Billing invoice models."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import relationship

from midtrans_gateway.db.base import Base


class InvoiceStatusEnum(str, Enum):
    """Lifecycle state for issued invoices."""

    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"
    CANCELED = "canceled"


class Invoice(Base):
    """Represents a client invoice payable through the gateway."""

    __tablename__ = "invoices"

    # Integer keys: Midtrans order ids are "<invoice id>-<timestamp>-<attempt>".
    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    hash = Column(String(64), nullable=False, unique=True)
    status = Column(
        SqlEnum(InvoiceStatusEnum, name="invoice_status_enum"),
        nullable=False,
        default=InvoiceStatusEnum.UNPAID,
    )
    currency = Column(String(3), nullable=False, default="IDR")
    taxrate = Column(Numeric(5, 2), nullable=False, default=0)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    client = relationship("Client")
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.display_order",
    )


class InvoiceLineItem(Base):
    """Individual billable line attached to an invoice."""

    __tablename__ = "invoice_line_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(255), nullable=False)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    taxed = Column(Boolean, nullable=False, default=False)
    display_order = Column(Integer, nullable=False, default=0)

    invoice = relationship("Invoice", back_populates="line_items")


__all__ = ["Invoice", "InvoiceLineItem", "InvoiceStatusEnum"]
