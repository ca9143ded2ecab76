"""Error taxonomy for the Midtrans gateway."""

from __future__ import annotations

from typing import Any, Mapping


class MidtransGatewayError(RuntimeError):
    """Base class for gateway failures."""


class MidtransConnectivityError(MidtransGatewayError):
    """The Midtrans API could not be reached (DNS, TLS, timeout, reset)."""


class MidtransProtocolError(MidtransGatewayError):
    """Midtrans answered, but not with the shape the gateway expects."""

    def __init__(self, message: str, *, payload: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.payload = dict(payload or {})


class InvalidSignatureError(MidtransProtocolError):
    """A notification's ``signature_key`` does not match the recomputed digest."""


class OrderIdConflictError(MidtransGatewayError):
    """Snap rejected the order id because an earlier request already used it."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Midtrans order_id has already been taken: {order_id}")
        self.order_id = order_id


class SnapTokenExhaustedError(OrderIdConflictError):
    """Every issuance attempt collided with an existing order id."""

    def __init__(self, order_id: str, attempts: int) -> None:
        super().__init__(order_id)
        self.attempts = attempts
        self.args = (f"Failed to get unique Snap token after {attempts} attempts",)


class RecurringPaymentsUnsupported(MidtransGatewayError):
    """Midtrans Snap one-time checkout cannot run recurrent charges."""


__all__ = [
    "InvalidSignatureError",
    "MidtransConnectivityError",
    "MidtransGatewayError",
    "MidtransProtocolError",
    "OrderIdConflictError",
    "RecurringPaymentsUnsupported",
    "SnapTokenExhaustedError",
]
