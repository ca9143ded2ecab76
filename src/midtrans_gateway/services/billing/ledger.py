"""Invoice and client ledger operations consumed by the payment gateway."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Sequence

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.models.client import Client, ClientBalanceEntry
from midtrans_gateway.models.invoice import Invoice, InvoiceLineItem, InvoiceStatusEnum


class BillingRecordNotFound(LookupError):
    """Raised when a referenced invoice or client does not exist."""


class InvoiceService:
    """Read invoices, compute their totals and transition them to paid."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = await self._session.get(Invoice, invoice_id)
        if invoice is None:
            raise BillingRecordNotFound(f"Invoice not found: {invoice_id}")
        return invoice

    async def list_line_items(self, invoice: Invoice) -> Sequence[InvoiceLineItem]:
        stmt = (
            select(InvoiceLineItem)
            .where(InvoiceLineItem.invoice_id == invoice.id)
            .order_by(InvoiceLineItem.display_order.asc(), InvoiceLineItem.id.asc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get_subtotal(self, invoice: Invoice) -> Decimal:
        items = await self.list_line_items(invoice)
        return sum((_line_total(item) for item in items), Decimal("0"))

    async def get_tax(self, invoice: Invoice) -> Decimal:
        """Tax owed on taxed lines at the invoice tax rate (unrounded)."""

        rate = Decimal(invoice.taxrate or 0)
        if rate <= 0:
            return Decimal("0")
        items = await self.list_line_items(invoice)
        taxable = sum((_line_total(item) for item in items if item.taxed), Decimal("0"))
        return taxable * rate / Decimal(100)

    async def get_total_with_tax(self, invoice: Invoice) -> Decimal:
        return await self.get_subtotal(invoice) + await self.get_tax(invoice)

    async def mark_as_paid(self, invoice: Invoice, *, paid_at: datetime | None = None) -> Invoice:
        invoice.status = InvoiceStatusEnum.PAID
        invoice.paid_at = paid_at or datetime.now(timezone.utc)
        await self._session.flush()
        logger.info("Invoice marked as paid", invoice_id=invoice.id)
        return invoice


class ClientService:
    """Client lookups and prepaid balance credits."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_client(self, client_id: int) -> Client:
        client = await self._session.get(Client, client_id)
        if client is None:
            raise BillingRecordNotFound(f"Client not found: {client_id}")
        return client

    async def add_funds(
        self,
        client: Client,
        amount: Decimal,
        description: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> ClientBalanceEntry:
        """Credit ``amount`` to the client balance and record the ledger entry."""

        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Funds amount must be positive")
        if not description:
            raise ValueError("Funds description is required")

        payload = dict(metadata or {})
        raw_invoice_id = payload.get("invoice_id")
        entry = ClientBalanceEntry(
            client_id=client.id,
            invoice_id=int(raw_invoice_id) if raw_invoice_id is not None else None,
            amount=amount,
            description=description,
            metadata_json={key: value for key, value in payload.items() if value is not None},
        )
        client.balance = Decimal(client.balance or 0) + amount
        self._session.add(entry)
        await self._session.flush()

        logger.info(
            "Funds added to client balance",
            client_id=client.id,
            amount=str(amount),
            invoice_id=entry.invoice_id,
        )
        return entry


def _line_total(item: InvoiceLineItem) -> Decimal:
    return Decimal(item.price or 0) * Decimal(item.quantity or 0)


__all__ = ["BillingRecordNotFound", "ClientService", "InvoiceService"]
