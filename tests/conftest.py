"""Shared pytest fixtures for billing service tests."""

from collections.abc import Iterable
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from billing_service.application.billing import BillingService
from billing_service.application.reporting import RunReporter
from billing_service.domain.exceptions import CustomerNotFoundError, InvoiceNotFoundError
from billing_service.domain.models import Currency, Customer, Invoice, InvoiceStatus, Money


class InMemoryInvoiceStore:
    """Invoice store keeping records in a dict, ordered by id."""

    def __init__(self, invoices: Iterable[Invoice] = ()) -> None:
        self.records: dict[int, Invoice] = {invoice.id: invoice for invoice in invoices}
        self.updates: list[Invoice] = []

    async def fetch(self, invoice_id: int) -> Invoice:
        try:
            return self.records[invoice_id]
        except KeyError:
            raise InvoiceNotFoundError(invoice_id) from None

    async def fetch_all(self) -> list[Invoice]:
        return [self.records[key] for key in sorted(self.records)]

    async def fetch_by_statuses(self, statuses: Iterable[InvoiceStatus]) -> list[Invoice]:
        wanted = set(statuses)
        return [invoice for invoice in await self.fetch_all() if invoice.status in wanted]

    async def count_by_status(self, status: InvoiceStatus) -> int:
        return sum(1 for invoice in self.records.values() if invoice.status == status)

    async def update(self, invoice: Invoice) -> None:
        self.updates.append(invoice)
        self.records[invoice.id] = invoice

    async def reset_errors(self) -> int:
        errored = [invoice for invoice in self.records.values() if invoice.status == InvoiceStatus.ERROR]
        for invoice in errored:
            self.records[invoice.id] = invoice.with_status(InvoiceStatus.PENDING)
        return len(errored)


class InMemoryCustomerStore:
    def __init__(self, customers: Iterable[Customer] = ()) -> None:
        self.records: dict[int, Customer] = {customer.id: customer for customer in customers}

    async def fetch(self, customer_id: int) -> Customer:
        try:
            return self.records[customer_id]
        except KeyError:
            raise CustomerNotFoundError(customer_id) from None

    async def fetch_all(self) -> list[Customer]:
        return [self.records[key] for key in sorted(self.records)]


def create_invoice(
    invoice_id: int,
    customer_id: int = 1,
    amount: str = "100",
    currency: Currency = Currency.USD,
    status: InvoiceStatus = InvoiceStatus.PENDING,
) -> Invoice:
    """Helper to create Invoice with custom values."""
    return Invoice(
        id=invoice_id,
        customer_id=customer_id,
        amount=Money(Decimal(amount), currency),
        status=status,
    )


def create_customer(customer_id: int, currency: Currency = Currency.USD) -> Customer:
    """Helper to create Customer with custom values."""
    return Customer(id=customer_id, currency=currency)


@pytest.fixture
def invoice_store() -> InMemoryInvoiceStore:
    """Create empty in-memory invoice store."""
    return InMemoryInvoiceStore()


@pytest.fixture
def customer_store() -> InMemoryCustomerStore:
    """Create customer store: 1 USD, 2 EUR, 3 DKK, 4 SEK, 5 GBP."""
    return InMemoryCustomerStore(
        [
            create_customer(1, Currency.USD),
            create_customer(2, Currency.EUR),
            create_customer(3, Currency.DKK),
            create_customer(4, Currency.SEK),
            create_customer(5, Currency.GBP),
        ]
    )


@pytest.fixture
def mock_payment_provider() -> AsyncMock:
    """Create payment provider that settles every charge."""
    provider = AsyncMock()
    provider.charge = AsyncMock(return_value=True)
    return provider


@pytest.fixture
def reporter() -> RunReporter:
    return RunReporter()


@pytest.fixture
def billing_service(
    invoice_store: InMemoryInvoiceStore,
    customer_store: InMemoryCustomerStore,
    mock_payment_provider: AsyncMock,
    reporter: RunReporter,
) -> BillingService:
    """Create BillingService over the in-memory stores."""
    return BillingService(
        invoices=invoice_store,
        customers=customer_store,
        payment_provider=mock_payment_provider,
        reporter=reporter,
    )
