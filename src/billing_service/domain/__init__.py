"""Domain layer - business entities and rules."""

from billing_service.domain.currency import RATES_TO_USD, REFERENCE_CURRENCY, convert, convert_invoice
from billing_service.domain.exceptions import (
    CurrencyMismatchError,
    CustomerNotFoundError,
    DomainError,
    InvoiceNotFoundError,
    NetworkError,
)
from billing_service.domain.models import (
    Currency,
    Customer,
    Invoice,
    InvoiceStatus,
    Money,
)


__all__ = [
    "RATES_TO_USD",
    "REFERENCE_CURRENCY",
    "Currency",
    "CurrencyMismatchError",
    "Customer",
    "CustomerNotFoundError",
    "DomainError",
    "Invoice",
    "InvoiceNotFoundError",
    "InvoiceStatus",
    "Money",
    "NetworkError",
    "convert",
    "convert_invoice",
]
