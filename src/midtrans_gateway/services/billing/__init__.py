"""Billing ledger services."""

from .countries import CountryDirectory, PhoneCodeLookup
from .ledger import BillingRecordNotFound, ClientService, InvoiceService

__all__ = [
    "BillingRecordNotFound",
    "ClientService",
    "CountryDirectory",
    "InvoiceService",
    "PhoneCodeLookup",
]
