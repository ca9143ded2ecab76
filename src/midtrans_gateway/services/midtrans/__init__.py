"""Midtrans Snap payment gateway services."""

from .amounts import ReconciledItems, SnapItemDetail, reconcile_items, round_amount
from .checkout import CheckoutWidget, render_checkout
from .client import MidtransSnapClient, SnapTransaction
from .config import MidtransGatewayConfig
from .errors import (
    InvalidSignatureError,
    MidtransConnectivityError,
    MidtransGatewayError,
    MidtransProtocolError,
    OrderIdConflictError,
    RecurringPaymentsUnsupported,
    SnapTokenExhaustedError,
)
from .gateway import MidtransPaymentAdapter, gateway_config
from .issuer import SnapTokenIssuer, build_order_id, frontend_invoice_url
from .notifications import MidtransNotificationProcessor, NotificationResult, compute_signature
from .payment_methods import describe_payment_method
from .phone import NormalizedPhone, PhoneNormalizer
from .token_store import SnapTokenStore, SqlSnapTokenStore, StoredSnapToken

__all__ = [
    "CheckoutWidget",
    "InvalidSignatureError",
    "MidtransConnectivityError",
    "MidtransGatewayConfig",
    "MidtransGatewayError",
    "MidtransNotificationProcessor",
    "MidtransPaymentAdapter",
    "MidtransProtocolError",
    "MidtransSnapClient",
    "NormalizedPhone",
    "NotificationResult",
    "OrderIdConflictError",
    "PhoneNormalizer",
    "ReconciledItems",
    "RecurringPaymentsUnsupported",
    "SnapItemDetail",
    "SnapTokenExhaustedError",
    "SnapTokenIssuer",
    "SnapTokenStore",
    "SnapTransaction",
    "SqlSnapTokenStore",
    "StoredSnapToken",
    "build_order_id",
    "compute_signature",
    "describe_payment_method",
    "frontend_invoice_url",
    "gateway_config",
    "reconcile_items",
    "render_checkout",
    "round_amount",
]
