#!/usr/bin/env python3
"""Run one billing pass right now, outside the monthly schedule.

Usage: run_billing_pass.py [INVOICE_ID]

With an invoice id only that invoice is charged.
"""
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import structlog

from billing_service.application.billing import BillingService, eligible_statuses
from billing_service.application.reporting import RunReporter
from billing_service.config import settings
from billing_service.domain.exceptions import InvoiceNotFoundError
from billing_service.infrastructure.database import Database
from billing_service.infrastructure.payment_provider import MockPaymentProvider
from billing_service.infrastructure.stores import SqlCustomerStore, SqlInvoiceStore
from billing_service.logging import configure_logging


logger = structlog.get_logger()


async def main(invoice_id: int | None) -> int:
    configure_logging(level=settings.log_level, log_format=settings.log_format)

    database = Database(settings.database_url)
    invoices = SqlInvoiceStore(database)
    customers = SqlCustomerStore(database)
    billing = BillingService(
        invoices=invoices,
        customers=customers,
        payment_provider=MockPaymentProvider(
            customers,
            network_error_rate=settings.payment_provider_network_error_rate,
            decline_rate=settings.payment_provider_decline_rate,
        ),
        reporter=RunReporter(),
        statuses=eligible_statuses(settings.billing_retry_error_invoices),
    )

    try:
        if invoice_id is None:
            await billing.handle_payments()
        else:
            await billing.handle_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        logger.error("invoice_not_found", invoice_id=e.invoice_id)
        return 1
    finally:
        await database.close()

    return 0


if __name__ == "__main__":
    target = int(sys.argv[1]) if len(sys.argv) > 1 else None
    sys.exit(asyncio.run(main(target)))
