"""SQLAlchemy models package."""

# Import all models
from .client import Client, ClientBalanceEntry  # noqa: F401
from .country import Country  # noqa: F401
from .invoice import Invoice, InvoiceLineItem, InvoiceStatusEnum  # noqa: F401
from .snap_token import SnapTokenRecord  # noqa: F401
from .transaction import MidtransTransaction, TransactionStatusEnum  # noqa: F401
