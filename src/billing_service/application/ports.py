"""Interfaces the billing core consumes from its collaborators."""

from collections.abc import Iterable
from typing import Protocol

from billing_service.domain.models import Customer, Invoice, InvoiceStatus


class InvoiceStore(Protocol):
    async def fetch(self, invoice_id: int) -> Invoice:
        """Return the invoice or raise InvoiceNotFoundError."""
        ...

    async def fetch_all(self) -> list[Invoice]: ...

    async def fetch_by_statuses(self, statuses: Iterable[InvoiceStatus]) -> list[Invoice]:
        """Return invoices in any of ``statuses``, ordered by id."""
        ...

    async def count_by_status(self, status: InvoiceStatus) -> int: ...

    async def update(self, invoice: Invoice) -> None:
        """Replace amount, currency and status of the stored record."""
        ...

    async def reset_errors(self) -> int:
        """Move every ERROR invoice back to PENDING, returning how many moved."""
        ...


class CustomerStore(Protocol):
    async def fetch(self, customer_id: int) -> Customer:
        """Return the customer or raise CustomerNotFoundError."""
        ...

    async def fetch_all(self) -> list[Customer]: ...


class PaymentProvider(Protocol):
    async def charge(self, invoice: Invoice) -> bool:
        """Charge the customer for ``invoice``.

        Returns True when the charge settled and False when the customer's
        account balance did not allow it.

        Raises:
            NetworkError: transient failure talking to the provider.
            CurrencyMismatchError: invoice and customer currencies differ.
            CustomerNotFoundError: the provider does not know the customer.
        """
        ...
