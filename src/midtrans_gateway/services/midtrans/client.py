"""HTTP client for the Midtrans Snap and Core status APIs."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

import httpx
from loguru import logger

from .config import MidtransGatewayConfig
from .errors import MidtransConnectivityError, MidtransProtocolError, OrderIdConflictError

if TYPE_CHECKING:
    from loguru import Logger

_ORDER_ID_TAKEN_MARKER = "order_id has already been taken"


@dataclass(slots=True)
class SnapTransaction:
    """Snap create-transaction response."""

    token: str
    redirect_url: str | None
    order_id: str


def _basic_auth(credential: str) -> str:
    encoded = base64.b64encode(credential.encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def _decode_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"raw": response.text[:512]}
    return body if isinstance(body, dict) else {"raw": body}


def _error_messages(body: Mapping[str, Any]) -> list[str]:
    messages = body.get("error_messages")
    if isinstance(messages, str):
        return [messages]
    if isinstance(messages, list):
        return [str(message) for message in messages]
    return []


class MidtransSnapClient:
    """Thin asynchronous wrapper around the Midtrans REST endpoints.

    Transport failures surface as :class:`MidtransConnectivityError`; a reused
    order id as :class:`OrderIdConflictError`; any other unusable answer as
    :class:`MidtransProtocolError`. Callers never inspect raw error text.
    """

    def __init__(
        self,
        config: MidtransGatewayConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        log: "Logger | None" = None,
    ) -> None:
        self._config = config
        self._client = http_client or httpx.AsyncClient(timeout=config.request_timeout_seconds)
        self._owns_client = http_client is None
        self._log = log or logger.bind(component="midtrans.client")

    @property
    def snap_transactions_url(self) -> str:
        return f"{self._config.snap_base_url}/snap/v1/transactions"

    def status_url(self, order_id: str) -> str:
        return f"{self._config.api_base_url}/v2/{order_id}/status"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def create_transaction(self, payload: Mapping[str, Any]) -> SnapTransaction:
        """Request a Snap session token for ``payload``."""

        details = payload.get("transaction_details") or {}
        order_id = str(details.get("order_id", ""))
        url = self.snap_transactions_url
        self._log.info(
            "Requesting Snap token",
            url=url,
            order_id=order_id,
            gross_amount=details.get("gross_amount"),
            item_count=len(payload.get("item_details") or []),
        )

        try:
            response = await self._client.post(
                url,
                content=json.dumps(payload),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "Authorization": _basic_auth(self._config.active_server_key),
                },
            )
        except httpx.RequestError as exc:
            self._log.error("Snap request failed", order_id=order_id, error=str(exc))
            raise MidtransConnectivityError(f"Failed to connect to Midtrans: {exc}") from exc

        body = _decode_body(response)
        self._log.info("Snap token response", order_id=order_id, status_code=response.status_code)

        token = body.get("token")
        if isinstance(token, str) and token:
            redirect_url = body.get("redirect_url")
            return SnapTransaction(
                token=token,
                redirect_url=str(redirect_url) if redirect_url else None,
                order_id=order_id,
            )

        messages = _error_messages(body)
        if any(_ORDER_ID_TAKEN_MARKER in message for message in messages):
            self._log.warning("Snap order id already taken", order_id=order_id)
            raise OrderIdConflictError(order_id)

        self._log.error(
            "Failed to get Snap token",
            order_id=order_id,
            status_code=response.status_code,
            error_messages=messages,
        )
        raise MidtransProtocolError(f"Failed to get Snap token: {json.dumps(body, default=str)}", payload=body)

    async def get_transaction_status(self, order_id: str) -> dict[str, Any]:
        """Fetch the provider-side status of ``order_id``."""

        if not order_id:
            raise ValueError("order_id is required")
        try:
            response = await self._client.get(
                self.status_url(order_id),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "Authorization": _basic_auth(f"{self._config.active_server_key}:"),
                },
            )
        except httpx.RequestError as exc:
            self._log.error("Error verifying transaction status", order_id=order_id, error=str(exc))
            raise MidtransConnectivityError(f"Failed to verify transaction status: {exc}") from exc

        body = _decode_body(response)
        if "transaction_status" not in body:
            self._log.error(
                "Invalid status response",
                order_id=order_id,
                status_code=response.status_code,
                response=body,
            )
            raise MidtransProtocolError("Invalid status response from Midtrans", payload=body)
        return body


__all__ = ["MidtransSnapClient", "SnapTransaction"]
