"""Integration tests for the SQL stores with a real PostgreSQL."""

from collections.abc import AsyncGenerator, Generator
from decimal import Decimal

import pytest
from sqlalchemy import text
from testcontainers.postgres import PostgresContainer

from billing_service.application.billing import BillingService
from billing_service.application.reporting import RunReporter
from billing_service.application.unit_of_work import UnitOfWork
from billing_service.domain.exceptions import CustomerNotFoundError, InvoiceNotFoundError
from billing_service.domain.models import Currency, Customer, Invoice, InvoiceStatus, Money
from billing_service.infrastructure.database import Database
from billing_service.infrastructure.stores import SqlCustomerStore, SqlInvoiceStore


pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """Start PostgreSQL container for tests."""
    container = PostgresContainer("postgres:16-alpine", driver="asyncpg")
    try:
        container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL container unavailable: {e}")
    try:
        yield container
    finally:
        container.stop()


@pytest.fixture
async def database(postgres_container: PostgresContainer) -> AsyncGenerator[Database, None]:
    db = Database(postgres_container.get_connection_url())
    await db.create_schema()
    async with db.engine.begin() as conn:
        await conn.execute(text("TRUNCATE invoices, customers RESTART IDENTITY CASCADE"))
    yield db
    await db.close()


@pytest.fixture
async def seeded(database: Database) -> tuple[Customer, Customer]:
    """Two customers (USD, EUR) and four invoices in different statuses."""
    async with UnitOfWork(database) as uow:
        usd = await uow.customers.add(Currency.USD)
        eur = await uow.customers.add(Currency.EUR)
        await uow.invoices.add(usd.id, Money(Decimal("100.00"), Currency.USD))
        await uow.invoices.add(eur.id, Money(Decimal("50.00"), Currency.USD))
        await uow.invoices.add(usd.id, Money(Decimal("10.00"), Currency.USD), InvoiceStatus.PAID)
        await uow.invoices.add(eur.id, Money(Decimal("20.00"), Currency.EUR), InvoiceStatus.ERROR)
    return usd, eur


class TestSqlInvoiceStore:
    @pytest.mark.asyncio
    async def test_fetch(self, database: Database, seeded) -> None:
        store = SqlInvoiceStore(database)

        invoice = await store.fetch(1)

        assert invoice == Invoice(1, 1, Money(Decimal("100"), Currency.USD), InvoiceStatus.PENDING)

    @pytest.mark.asyncio
    async def test_fetch_missing(self, database: Database) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await SqlInvoiceStore(database).fetch(999)

    @pytest.mark.asyncio
    async def test_fetch_by_statuses_in_id_order(self, database: Database, seeded) -> None:
        store = SqlInvoiceStore(database)

        invoices = await store.fetch_by_statuses({InvoiceStatus.ERROR, InvoiceStatus.PENDING})

        assert [invoice.id for invoice in invoices] == [1, 2, 4]

    @pytest.mark.asyncio
    async def test_fetch_by_no_statuses(self, database: Database, seeded) -> None:
        assert await SqlInvoiceStore(database).fetch_by_statuses([]) == []

    @pytest.mark.asyncio
    async def test_count_by_status(self, database: Database, seeded) -> None:
        store = SqlInvoiceStore(database)

        assert await store.count_by_status(InvoiceStatus.PENDING) == 2
        assert await store.count_by_status(InvoiceStatus.MISSING_FUNDS) == 0

    @pytest.mark.asyncio
    async def test_update_replaces_amount_and_status(self, database: Database, seeded) -> None:
        store = SqlInvoiceStore(database)
        original = await store.fetch(2)
        exact = Decimal("50") / Decimal("1.13")

        await store.update(original.with_amount(Money(exact, Currency.EUR)).with_status(InvoiceStatus.PAID))

        stored = await store.fetch(2)
        assert stored.amount == Money(exact, Currency.EUR)
        assert stored.status == InvoiceStatus.PAID
        assert stored.customer_id == original.customer_id

    @pytest.mark.asyncio
    async def test_reset_errors(self, database: Database, seeded) -> None:
        store = SqlInvoiceStore(database)

        assert await store.reset_errors() == 1
        assert (await store.fetch(4)).status == InvoiceStatus.PENDING

    @pytest.mark.asyncio
    async def test_fetch_all(self, database: Database, seeded) -> None:
        invoices = await SqlInvoiceStore(database).fetch_all()

        assert [invoice.id for invoice in invoices] == [1, 2, 3, 4]


class TestSqlCustomerStore:
    @pytest.mark.asyncio
    async def test_fetch(self, database: Database, seeded) -> None:
        usd, eur = seeded

        assert await SqlCustomerStore(database).fetch(eur.id) == Customer(eur.id, Currency.EUR)

    @pytest.mark.asyncio
    async def test_fetch_missing(self, database: Database) -> None:
        with pytest.raises(CustomerNotFoundError):
            await SqlCustomerStore(database).fetch(42)


class TestUnitOfWork:
    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, database: Database) -> None:
        with pytest.raises(RuntimeError):
            async with UnitOfWork(database) as uow:
                await uow.customers.add(Currency.SEK)
                raise RuntimeError("abort")

        assert await SqlCustomerStore(database).fetch_all() == []


class TestBillingPassOnDatabase:
    @pytest.mark.asyncio
    async def test_pass_persists_outcomes(self, database: Database, seeded) -> None:
        invoices = SqlInvoiceStore(database)
        customers = SqlCustomerStore(database)

        class SettlingProvider:
            async def charge(self, invoice: Invoice) -> bool:
                return True

        billing = BillingService(invoices, customers, SettlingProvider(), RunReporter())

        result = await billing.handle_payments()

        assert [invoice.id for invoice in result] == [1, 2, 4]
        assert await invoices.count_by_status(InvoiceStatus.PAID) == 4
        converted = await invoices.fetch(2)
        assert converted.amount.currency == Currency.EUR
