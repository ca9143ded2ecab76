from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from midtrans_gateway.db.base import Base


class SnapTokenRecord(Base):
    """Cached Snap session token; one row per invoice, expiry enforced by the store."""

    __tablename__ = "midtrans_snap_tokens"

    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), primary_key=True)
    token = Column(String(255), nullable=False)
    order_id = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


__all__ = ["SnapTokenRecord"]
