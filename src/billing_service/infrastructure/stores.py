"""Database backed stores used by the billing core.

Every call runs in its own transaction, so a write is visible to the next
read as soon as the call returns.
"""

from collections.abc import Iterable

from billing_service.application.unit_of_work import UnitOfWork
from billing_service.domain.exceptions import CustomerNotFoundError, InvoiceNotFoundError
from billing_service.domain.models import Customer, Invoice, InvoiceStatus
from billing_service.infrastructure.database import Database


class SqlInvoiceStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def fetch(self, invoice_id: int) -> Invoice:
        async with UnitOfWork(self._database) as uow:
            invoice = await uow.invoices.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    async def fetch_all(self) -> list[Invoice]:
        async with UnitOfWork(self._database) as uow:
            return await uow.invoices.list_all()

    async def fetch_by_statuses(self, statuses: Iterable[InvoiceStatus]) -> list[Invoice]:
        async with UnitOfWork(self._database) as uow:
            return await uow.invoices.list_by_statuses(statuses)

    async def count_by_status(self, status: InvoiceStatus) -> int:
        async with UnitOfWork(self._database) as uow:
            return await uow.invoices.count_by_status(status)

    async def update(self, invoice: Invoice) -> None:
        async with UnitOfWork(self._database) as uow:
            await uow.invoices.update(invoice)

    async def reset_errors(self) -> int:
        async with UnitOfWork(self._database) as uow:
            return await uow.invoices.update_status_where(InvoiceStatus.ERROR, InvoiceStatus.PENDING)


class SqlCustomerStore:
    def __init__(self, database: Database) -> None:
        self._database = database

    async def fetch(self, customer_id: int) -> Customer:
        async with UnitOfWork(self._database) as uow:
            customer = await uow.customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    async def fetch_all(self) -> list[Customer]:
        async with UnitOfWork(self._database) as uow:
            return await uow.customers.list_all()
