"""Payment adapter facade the billing platform calls for Midtrans invoices."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from midtrans_gateway.observability.payments import PaymentObservabilityStore, get_payment_store
from midtrans_gateway.services.billing.countries import CountryDirectory
from midtrans_gateway.services.billing.ledger import ClientService, InvoiceService
from .checkout import CheckoutWidget, render_checkout
from .client import MidtransSnapClient
from .config import MidtransGatewayConfig
from .errors import RecurringPaymentsUnsupported
from .issuer import InvoiceUrlFactory, SnapTokenIssuer, frontend_invoice_url
from .notifications import MidtransNotificationProcessor, NotificationResult
from .phone import PhoneNormalizer
from .token_store import Clock, SnapTokenStore, SqlSnapTokenStore, utcnow

if TYPE_CHECKING:
    from loguru import Logger


def gateway_config() -> dict[str, Any]:
    """Admin-facing description of the gateway and its configuration form."""

    return {
        "supports_one_time_payments": True,
        "supports_subscriptions": False,
        "description": "Pay with Midtrans (Credit Card, Bank Transfer, E-Wallet, etc)",
        "logo": {"logo": "Midtrans.png", "height": "60px", "width": "125px"},
        "form": {
            "merchant_id": ["text", {"label": "Merchant ID"}],
            "client_key": ["text", {"label": "Client Key"}],
            "server_key": ["password", {"label": "Server Key"}],
            "sandbox_merchant_id": ["text", {"label": "Sandbox Merchant ID"}],
            "sandbox_client_key": ["text", {"label": "Sandbox Client Key"}],
            "sandbox_server_key": ["password", {"label": "Sandbox Server Key"}],
            "use_sandbox": ["radio", {"label": "Use Sandbox", "multiOptions": {"1": "Yes", "0": "No"}}],
            "payment_mode": [
                "select",
                {"label": "Payment Mode", "multiOptions": {"popup": "Popup", "embedded": "Embedded"}},
            ],
            "default_country_code": [
                "text",
                {
                    "label": "Default Country Code (ISO 3166-1 alpha-3)",
                    "description": "e.g., IDN for Indonesia, USA for United States",
                    "value": "IDN",
                },
            ],
        },
    }


class MidtransPaymentAdapter:
    """Wires the Snap issuer, checkout renderer and notification processor to one session."""

    def __init__(
        self,
        session: AsyncSession,
        config: MidtransGatewayConfig,
        *,
        frontend_url: str,
        http_client: httpx.AsyncClient | None = None,
        snap_client: MidtransSnapClient | None = None,
        store: SnapTokenStore | None = None,
        finish_url: InvoiceUrlFactory | None = None,
        clock: Clock = utcnow,
        observability: PaymentObservabilityStore | None = None,
        log: "Logger | None" = None,
    ) -> None:
        self._session = session
        self._config = config
        self._log = log or logger.bind(component="midtrans.gateway")
        self._observability = observability or get_payment_store()
        self._snap = snap_client or MidtransSnapClient(config, http_client=http_client)
        self.invoices = InvoiceService(session)
        self.clients = ClientService(session)

        self._finish_url = finish_url or frontend_invoice_url(frontend_url)

        self.issuer = SnapTokenIssuer(
            config=config,
            store=store or SqlSnapTokenStore(session, ttl=timedelta(seconds=config.token_ttl_seconds), clock=clock),
            client=self._snap,
            invoices=self.invoices,
            clients=self.clients,
            phone_normalizer=PhoneNormalizer(
                CountryDirectory(session),
                default_country_code=config.default_country_code,
            ),
            finish_url=self._finish_url,
            clock=clock,
        )
        self.notifications = MidtransNotificationProcessor(
            session,
            config,
            invoices=self.invoices,
            clients=self.clients,
        )

    @staticmethod
    def gateway_config() -> dict[str, Any]:
        return gateway_config()

    async def aclose(self) -> None:
        await self._snap.aclose()

    async def checkout(self, invoice_id: int) -> CheckoutWidget:
        invoice = await self.invoices.get_invoice(invoice_id)
        finish_url = self._finish_url(invoice)
        token = await self.issuer.issue(invoice)
        return render_checkout(self._config, token, finish_url)

    async def get_html(self, invoice_id: int) -> str:
        """Checkout widget markup, or ``Error: <message>`` when it cannot be produced."""

        try:
            widget = await self.checkout(invoice_id)
        except Exception as exc:
            self._log.error("Error rendering Midtrans checkout", invoice_id=invoice_id, error=str(exc))
            self._observability.record_checkout_failure(invoice_id, str(exc))
            return f"Error: {exc}"

        self._observability.record_checkout_success(invoice_id, widget.mode)
        return widget.html

    async def handle_notification(self, raw_body: bytes | str) -> NotificationResult:
        result = await self.notifications.handle(raw_body)
        self._observability.record_notification(
            result.transaction_status,
            accepted=result.accepted,
            order_id=result.order_id,
            credited=result.credited,
            error=result.error,
        )
        return result

    async def process_transaction(self, raw_body: bytes | str) -> bool:
        return (await self.handle_notification(raw_body)).accepted

    def is_ipn_valid(self, raw_body: bytes | str) -> bool:
        return self.notifications.is_valid(raw_body)

    async def recurrent_payment(self, invoice_id: int) -> None:
        self._log.warning("Recurrent payment requested", invoice_id=invoice_id)
        raise RecurringPaymentsUnsupported("Midtrans doesn't support recurrent payments")

    async def verify_transaction_status(self, order_id: str) -> dict[str, Any]:
        return await self._snap.get_transaction_status(order_id)


__all__ = ["MidtransPaymentAdapter", "gateway_config"]
