"""Resolved Midtrans credentials and endpoints for the active mode."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from midtrans_gateway.core.settings import Settings

SNAP_SANDBOX_URL = "https://app.sandbox.midtrans.com"
SNAP_PRODUCTION_URL = "https://app.midtrans.com"
API_SANDBOX_URL = "https://api.sandbox.midtrans.com"
API_PRODUCTION_URL = "https://api.midtrans.com"


@dataclass(slots=True, frozen=True)
class MidtransGatewayConfig:
    """Gateway configuration; sandbox or production keys are picked by ``use_sandbox``."""

    merchant_id: str = ""
    client_key: str = ""
    server_key: str = ""
    sandbox_merchant_id: str = ""
    sandbox_client_key: str = ""
    sandbox_server_key: str = ""
    use_sandbox: bool = True
    payment_mode: Literal["popup", "embedded"] = "popup"
    default_country_code: str = "IDN"
    request_timeout_seconds: float = 15.0
    token_ttl_seconds: int = 3600
    max_token_attempts: int = 3
    gateway_id: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "MidtransGatewayConfig":
        return cls(
            merchant_id=settings.midtrans_merchant_id,
            client_key=settings.midtrans_client_key,
            server_key=settings.midtrans_server_key,
            sandbox_merchant_id=settings.midtrans_sandbox_merchant_id,
            sandbox_client_key=settings.midtrans_sandbox_client_key,
            sandbox_server_key=settings.midtrans_sandbox_server_key,
            use_sandbox=settings.midtrans_use_sandbox,
            payment_mode=settings.midtrans_payment_mode,
            default_country_code=settings.midtrans_default_country_code,
            request_timeout_seconds=settings.midtrans_request_timeout_seconds,
            token_ttl_seconds=settings.midtrans_token_ttl_seconds,
            max_token_attempts=settings.midtrans_max_token_attempts,
            gateway_id=settings.midtrans_gateway_id,
        )

    @property
    def active_server_key(self) -> str:
        return self.sandbox_server_key if self.use_sandbox else self.server_key

    @property
    def active_client_key(self) -> str:
        return self.sandbox_client_key if self.use_sandbox else self.client_key

    @property
    def active_merchant_id(self) -> str:
        return self.sandbox_merchant_id if self.use_sandbox else self.merchant_id

    @property
    def snap_base_url(self) -> str:
        return SNAP_SANDBOX_URL if self.use_sandbox else SNAP_PRODUCTION_URL

    @property
    def api_base_url(self) -> str:
        return API_SANDBOX_URL if self.use_sandbox else API_PRODUCTION_URL

    @property
    def snap_js_url(self) -> str:
        return f"{self.snap_base_url}/snap/snap.js"


__all__ = [
    "API_PRODUCTION_URL",
    "API_SANDBOX_URL",
    "MidtransGatewayConfig",
    "SNAP_PRODUCTION_URL",
    "SNAP_SANDBOX_URL",
]
