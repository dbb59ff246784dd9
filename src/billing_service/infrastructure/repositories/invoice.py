from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from billing_service.domain.models import Currency, Invoice, InvoiceStatus, Money


_COLUMNS = "id, customer_id, currency, amount, status"


def _to_invoice(row: Any) -> Invoice:
    return Invoice(
        id=row.id,
        customer_id=row.customer_id,
        amount=Money(amount=Decimal(row.amount), currency=Currency(row.currency)),
        status=InvoiceStatus(row.status),
    )


class InvoiceRepository:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, invoice_id: int) -> Invoice | None:
        result = await self._session.execute(
            text(f"SELECT {_COLUMNS} FROM invoices WHERE id = :id"),
            {"id": invoice_id},
        )
        row = result.fetchone()
        if not row:
            return None
        return _to_invoice(row)

    async def list_all(self) -> list[Invoice]:
        result = await self._session.execute(text(f"SELECT {_COLUMNS} FROM invoices ORDER BY id"))
        return [_to_invoice(row) for row in result.fetchall()]

    async def list_by_statuses(self, statuses: Iterable[InvoiceStatus]) -> list[Invoice]:
        values = sorted(status.value for status in statuses)
        if not values:
            return []
        stmt = text(f"""
            SELECT {_COLUMNS}
            FROM invoices
            WHERE status IN :statuses
            ORDER BY id
        """).bindparams(bindparam("statuses", expanding=True))
        result = await self._session.execute(stmt, {"statuses": values})
        return [_to_invoice(row) for row in result.fetchall()]

    async def count_by_status(self, status: InvoiceStatus) -> int:
        result = await self._session.execute(
            text("SELECT COUNT(*) FROM invoices WHERE status = :status"),
            {"status": status.value},
        )
        return int(result.scalar_one())

    async def add(self, customer_id: int, amount: Money, status: InvoiceStatus = InvoiceStatus.PENDING) -> Invoice:
        result = await self._session.execute(
            text("""
                INSERT INTO invoices (customer_id, currency, amount, status)
                VALUES (:customer_id, :currency, :amount, :status)
                RETURNING id
            """),
            {
                "customer_id": customer_id,
                "currency": amount.currency.value,
                "amount": amount.amount,
                "status": status.value,
            },
        )
        return Invoice(id=result.scalar_one(), customer_id=customer_id, amount=amount, status=status)

    async def update(self, invoice: Invoice) -> None:
        # customer_id is immutable and deliberately not part of the SET list.
        await self._session.execute(
            text("""
                UPDATE invoices
                SET currency = :currency,
                    amount = :amount,
                    status = :status
                WHERE id = :id
            """),
            {
                "id": invoice.id,
                "currency": invoice.amount.currency.value,
                "amount": invoice.amount.amount,
                "status": invoice.status.value,
            },
        )

    async def update_status_where(self, current: InvoiceStatus, new: InvoiceStatus) -> int:
        result = await self._session.execute(
            text("UPDATE invoices SET status = :new WHERE status = :current"),
            {"current": current.value, "new": new.value},
        )
        return result.rowcount
