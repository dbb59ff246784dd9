from types import TracebackType
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession

from billing_service.infrastructure.database import Database
from billing_service.infrastructure.repositories import CustomerRepository, InvoiceRepository


class UnitOfWork:
    """One database transaction spanning the customer and invoice repositories.

    The session is opened on enter. Leaving the block normally commits, leaving
    it with an exception rolls back.
    """

    customers: CustomerRepository
    invoices: InvoiceRepository

    def __init__(self, database: Database) -> None:
        self._database = database
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> Self:
        self._session = self._database.session_factory()
        self.customers = CustomerRepository(self._session)
        self.invoices = InvoiceRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            if self._session is not None:
                await self._session.close()
                self._session = None

    async def commit(self) -> None:
        if self._session is not None:
            await self._session.commit()

    async def rollback(self) -> None:
        if self._session is not None:
            await self._session.rollback()
