"""Snap session token issuance with conflict-aware retries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol

from loguru import logger

from midtrans_gateway.models.client import Client
from midtrans_gateway.models.invoice import Invoice
from midtrans_gateway.services.billing.ledger import ClientService, InvoiceService
from .amounts import reconcile_items
from .client import SnapTransaction
from .config import MidtransGatewayConfig
from .errors import OrderIdConflictError, SnapTokenExhaustedError
from .phone import PhoneNormalizer
from .token_store import Clock, SnapTokenStore, utcnow

if TYPE_CHECKING:
    from loguru import Logger

InvoiceUrlFactory = Callable[[Invoice], str]


class SnapTransactionCreator(Protocol):
    async def create_transaction(self, payload: dict[str, Any]) -> SnapTransaction:
        ...


def frontend_invoice_url(base_url: str) -> InvoiceUrlFactory:
    """Link back to the client-facing invoice page, addressed by invoice hash."""

    root = base_url.rstrip("/")

    def _build(invoice: Invoice) -> str:
        return f"{root}/invoice/{invoice.hash}"

    return _build


def build_order_id(invoice_id: int, timestamp: int, attempt: int) -> str:
    return f"{invoice_id}-{timestamp}-{attempt}"


def _drop_empty(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value}


class SnapTokenIssuer:
    """Returns a valid Snap token for an invoice, creating one only when the cache is cold."""

    def __init__(
        self,
        *,
        config: MidtransGatewayConfig,
        store: SnapTokenStore,
        client: SnapTransactionCreator,
        invoices: InvoiceService,
        clients: ClientService,
        phone_normalizer: PhoneNormalizer,
        finish_url: InvoiceUrlFactory,
        clock: Clock = utcnow,
        log: "Logger | None" = None,
    ) -> None:
        self._config = config
        self._store = store
        self._client = client
        self._invoices = invoices
        self._clients = clients
        self._phone = phone_normalizer
        self._finish_url = finish_url
        self._clock = clock
        self._log = log or logger.bind(component="midtrans.issuer")

    async def issue(self, invoice: Invoice) -> str:
        max_attempts = max(self._config.max_token_attempts, 1)
        order_id = ""
        for attempt in range(max_attempts):
            stored = await self._store.get(invoice.id)
            if stored is not None:
                self._log.info("Reusing cached Snap token", invoice_id=invoice.id, order_id=stored.order_id)
                return stored.token

            now = self._clock()
            order_id = build_order_id(invoice.id, int(now.timestamp()), attempt)
            payload = await self.build_request(invoice, order_id)
            try:
                transaction = await self._client.create_transaction(payload)
            except OrderIdConflictError:
                self._log.warning(
                    "Snap order id collision; retrying",
                    invoice_id=invoice.id,
                    order_id=order_id,
                    attempt=attempt,
                )
                continue

            self._log.info(
                "Issued Snap token",
                invoice_id=invoice.id,
                order_id=order_id,
                redirect_url=transaction.redirect_url,
            )
            await self._store.put(invoice.id, transaction.token, order_id, now)
            return transaction.token

        self._log.error("Snap token attempts exhausted", invoice_id=invoice.id, attempts=max_attempts)
        raise SnapTokenExhaustedError(order_id, max_attempts)

    async def build_request(self, invoice: Invoice, order_id: str) -> dict[str, Any]:
        """Assemble the Snap create-transaction body for ``invoice``."""

        buyer = await self._clients.get_client(invoice.client_id)
        lines = await self._invoices.list_line_items(invoice)
        tax = await self._invoices.get_tax(invoice)
        total = await self._invoices.get_total_with_tax(invoice)
        reconciled = reconcile_items(lines, tax, total)

        if reconciled.adjustment:
            self._log.info(
                "Applied rounding adjustment to Snap items",
                invoice_id=invoice.id,
                adjustment=reconciled.adjustment,
            )

        phone = await self._phone.normalize(buyer.phone, buyer.country)
        address = self._address_block(buyer, phone.full_number)

        return {
            "transaction_details": {
                "order_id": order_id,
                "gross_amount": reconciled.gross_amount,
            },
            "customer_details": {
                "first_name": buyer.first_name,
                "last_name": buyer.last_name,
                "email": buyer.email,
                "phone": phone.full_number,
                "billing_address": dict(address),
                "shipping_address": dict(address),
            },
            "item_details": reconciled.as_payload(),
            "callbacks": {"finish": self._finish_url(invoice)},
        }

    def _address_block(self, buyer: Client, phone: str) -> dict[str, Any]:
        return _drop_empty(
            {
                "first_name": buyer.first_name,
                "last_name": buyer.last_name,
                "email": buyer.email,
                "phone": phone,
                "address": buyer.address or "",
                "city": buyer.city or "",
                "postal_code": buyer.postcode or "",
                "country_code": self._config.default_country_code,
                "state": buyer.state or "",
            }
        )


__all__ = [
    "InvoiceUrlFactory",
    "SnapTokenIssuer",
    "SnapTransactionCreator",
    "build_order_id",
    "frontend_invoice_url",
]
