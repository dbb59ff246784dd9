#!/usr/bin/env python3
"""Seed the database with demo customers and invoices.

Each customer gets one PENDING invoice and the rest already PAID. Now and then
an invoice is issued in a currency other than the customer's so the billing
pass has something to convert.
"""
import asyncio
import random
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from billing_service.application.unit_of_work import UnitOfWork
from billing_service.config import settings
from billing_service.domain.models import Currency, InvoiceStatus, Money
from billing_service.infrastructure.database import Database
from billing_service.logging import configure_logging


logger = structlog.get_logger()

MISMATCHED_CURRENCY_RATE = 1 / 9


def random_amount(rng: random.Random) -> Decimal:
    return Decimal(rng.randint(1000, 50000)) / 100


async def main() -> None:
    configure_logging(level=settings.log_level, log_format=settings.log_format)

    rng = random.Random()
    currencies = list(Currency)

    database = Database(settings.database_url)
    await database.create_schema()

    try:
        async with UnitOfWork(database) as uow:
            for _ in range(settings.seed_customers):
                customer = await uow.customers.add(rng.choice(currencies))
                for index in range(settings.seed_invoices_per_customer):
                    currency = customer.currency
                    if rng.random() < MISMATCHED_CURRENCY_RATE:
                        currency = rng.choice(currencies)
                    await uow.invoices.add(
                        customer_id=customer.id,
                        amount=Money(random_amount(rng), currency),
                        status=InvoiceStatus.PENDING if index == 0 else InvoiceStatus.PAID,
                    )
    finally:
        await database.close()

    logger.info(
        "seed_data_created",
        customers=settings.seed_customers,
        invoices_per_customer=settings.seed_invoices_per_customer,
    )


if __name__ == "__main__":
    asyncio.run(main())
