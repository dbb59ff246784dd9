"""Repository implementations."""

from billing_service.infrastructure.repositories.customer import CustomerRepository
from billing_service.infrastructure.repositories.invoice import InvoiceRepository


__all__ = [
    "CustomerRepository",
    "InvoiceRepository",
]
