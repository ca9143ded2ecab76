from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID

from midtrans_gateway.db.base import Base


class TransactionStatusEnum(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


class MidtransTransaction(Base):
    """Latest Midtrans snapshot for an invoice; one row per invoice, updated in place."""

    __tablename__ = "midtrans_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, unique=True)
    gateway_id = Column(Integer, nullable=True)
    txn_status = Column(String(32), nullable=True)
    txn_id = Column(String(64), nullable=True)
    amount = Column(Numeric(18, 2), nullable=True)
    currency = Column(String(3), nullable=True)
    payment_type = Column(String(64), nullable=True)
    status = Column(SqlEnum(TransactionStatusEnum, name="midtrans_transaction_status_enum"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


__all__ = ["MidtransTransaction", "TransactionStatusEnum"]
