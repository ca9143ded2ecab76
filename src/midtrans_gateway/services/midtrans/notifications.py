"""Midtrans HTTP notification (IPN) verification and settlement."""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Mapping

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.models.invoice import Invoice, InvoiceStatusEnum
from midtrans_gateway.models.transaction import MidtransTransaction, TransactionStatusEnum
from midtrans_gateway.services.billing.ledger import BillingRecordNotFound, ClientService, InvoiceService
from .config import MidtransGatewayConfig
from .errors import InvalidSignatureError, MidtransProtocolError
from .payment_methods import describe_payment_method

if TYPE_CHECKING:
    from loguru import Logger

SETTLED_STATUSES = frozenset({"capture", "settlement"})
PENDING_STATUSES = frozenset({"pending"})
FAILED_STATUSES = frozenset({"deny", "expire", "cancel"})


def compute_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    """Return the hex SHA-512 digest Midtrans places in ``signature_key``."""

    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


def verify_signature(notification: Mapping[str, Any], server_key: str) -> bool:
    provided = notification.get("signature_key")
    if not isinstance(provided, str) or not provided:
        return False
    expected = compute_signature(
        _text(notification.get("order_id")),
        _text(notification.get("status_code")),
        _text(notification.get("gross_amount")),
        server_key,
    )
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def parse_notification(raw_body: bytes | str) -> dict[str, Any]:
    try:
        payload = json.loads(raw_body)
    except (TypeError, ValueError) as exc:
        raise MidtransProtocolError("Invalid notification data") from exc
    if not isinstance(payload, dict):
        raise MidtransProtocolError("Invalid notification data")
    return payload


def invoice_id_from_order_id(order_id: Any) -> int:
    """Order ids are ``<invoice id>-<timestamp>-<attempt>``."""

    head = _text(order_id).split("-", 1)[0]
    try:
        return int(head)
    except ValueError as exc:
        raise MidtransProtocolError(f"Unrecognised order_id: {order_id!r}") from exc


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _decimal(value: Any) -> Decimal:
    try:
        return Decimal(_text(value))
    except InvalidOperation as exc:
        raise MidtransProtocolError(f"Invalid gross_amount: {value!r}") from exc


@dataclass(slots=True)
class NotificationResult:
    """Outcome of a single notification delivery."""

    accepted: bool
    order_id: str | None = None
    transaction_status: str | None = None
    credited: bool = False
    error: str | None = None


class MidtransNotificationProcessor:
    """Applies verified Midtrans notifications to invoices and client balances.

    Every notification refreshes the invoice's transaction snapshot. Only the
    first ``capture``/``settlement`` for an unpaid invoice credits the client;
    redeliveries find the invoice already paid and leave the balance alone.
    Failures never propagate: they roll back the unit of work and report
    ``accepted=False`` so the provider retries the delivery.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: MidtransGatewayConfig,
        *,
        invoices: InvoiceService | None = None,
        clients: ClientService | None = None,
        log: "Logger | None" = None,
    ) -> None:
        self._session = session
        self._config = config
        self._invoices = invoices or InvoiceService(session)
        self._clients = clients or ClientService(session)
        self._log = log or logger.bind(component="midtrans.notifications")

    def is_valid(self, raw_body: bytes | str) -> bool:
        """Signature check only; no state is read or written."""

        try:
            notification = parse_notification(raw_body)
        except MidtransProtocolError:
            return False
        return verify_signature(notification, self._config.active_server_key)

    async def process(self, raw_body: bytes | str) -> bool:
        return (await self.handle(raw_body)).accepted

    async def handle(self, raw_body: bytes | str) -> NotificationResult:
        result = NotificationResult(accepted=False)
        try:
            notification = parse_notification(raw_body)
            result.order_id = _text(notification.get("order_id")) or None
            result.transaction_status = _text(notification.get("transaction_status")) or None

            invoice_id = invoice_id_from_order_id(notification.get("order_id"))
            if not verify_signature(notification, self._config.active_server_key):
                raise InvalidSignatureError("Invalid signature", payload={"order_id": result.order_id})

            credited = await self._apply(invoice_id, notification)
            await self._session.commit()
        except Exception as exc:
            await self._session.rollback()
            result.error = str(exc) or exc.__class__.__name__
            log = self._log.warning if isinstance(exc, MidtransProtocolError) else self._log.error
            log(
                "Midtrans notification rejected",
                order_id=result.order_id,
                transaction_status=result.transaction_status,
                error=result.error,
                error_type=exc.__class__.__name__,
            )
            return result

        result.accepted = True
        result.credited = credited
        self._log.info(
            "Midtrans notification processed",
            order_id=result.order_id,
            transaction_status=result.transaction_status,
            credited=result.credited,
        )
        return result

    async def _apply(self, invoice_id: int, notification: Mapping[str, Any]) -> bool:
        invoice = await self._lock_invoice(invoice_id)
        transaction = await self._load_or_create_transaction(invoice)

        status = _text(notification.get("transaction_status"))
        gross_amount = _decimal(notification.get("gross_amount"))
        transaction.txn_status = status
        transaction.txn_id = _text(notification.get("transaction_id")) or None
        transaction.amount = gross_amount
        transaction.currency = _text(notification.get("currency")) or invoice.currency
        transaction.payment_type = _text(notification.get("payment_type")) or None

        credited = False
        if status in SETTLED_STATUSES:
            if invoice.status != InvoiceStatusEnum.PAID:
                await self._settle(invoice, gross_amount, notification)
                transaction.status = TransactionStatusEnum.COMPLETE
                credited = True
            else:
                self._log.info("Invoice already paid; skipping credit", invoice_id=invoice.id)
        elif status in PENDING_STATUSES:
            transaction.status = TransactionStatusEnum.PENDING
        elif status in FAILED_STATUSES:
            transaction.status = TransactionStatusEnum.FAILED
        else:
            self._log.info("Unmapped Midtrans transaction status", invoice_id=invoice.id, transaction_status=status)

        await self._session.flush()
        return credited

    async def _lock_invoice(self, invoice_id: int) -> Invoice:
        stmt = select(Invoice).where(Invoice.id == invoice_id).with_for_update()
        result = await self._session.execute(stmt)
        invoice = result.scalar_one_or_none()
        if invoice is None:
            raise BillingRecordNotFound(f"Invoice not found: {invoice_id}")
        return invoice

    async def _load_or_create_transaction(self, invoice: Invoice) -> MidtransTransaction:
        stmt = select(MidtransTransaction).where(MidtransTransaction.invoice_id == invoice.id)
        result = await self._session.execute(stmt)
        transaction = result.scalar_one_or_none()
        if transaction is None:
            transaction = MidtransTransaction(invoice_id=invoice.id, gateway_id=self._config.gateway_id)
            self._session.add(transaction)
        return transaction

    async def _settle(self, invoice: Invoice, amount: Decimal, notification: Mapping[str, Any]) -> None:
        method = describe_payment_method(notification)
        client = await self._clients.get_client(invoice.client_id)
        await self._clients.add_funds(
            client,
            amount,
            f"Payment for invoice #{invoice.id} via {method}",
            {
                "invoice_id": invoice.id,
                "transaction_id": _text(notification.get("transaction_id")) or None,
                "payment_method": method,
                "payment_type": _text(notification.get("payment_type")) or None,
            },
        )
        await self._invoices.mark_as_paid(invoice)


__all__ = [
    "MidtransNotificationProcessor",
    "NotificationResult",
    "compute_signature",
    "invoice_id_from_order_id",
    "parse_notification",
    "verify_signature",
]
