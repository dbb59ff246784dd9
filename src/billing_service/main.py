import asyncio
import signal

import structlog

from billing_service.api.http import ApiServer, create_app
from billing_service.application.billing import BillingService, eligible_statuses
from billing_service.application.reporting import RunReporter
from billing_service.application.scheduling import SchedulingService
from billing_service.config import settings
from billing_service.infrastructure.database import Database
from billing_service.infrastructure.payment_provider import MockPaymentProvider
from billing_service.infrastructure.stores import SqlCustomerStore, SqlInvoiceStore
from billing_service.logging import configure_logging


logger = structlog.get_logger()


async def main() -> None:
    configure_logging(
        level=settings.log_level,
        log_format=settings.log_format,
    )

    logger.info(
        "starting_billing_service",
        api_port=settings.api_port,
        log_level=settings.log_level,
        billing_day_of_month=settings.billing_day_of_month,
        retry_error_invoices=settings.billing_retry_error_invoices,
    )

    database = Database(settings.database_url)
    if settings.database_create_schema:
        await database.create_schema()

    invoices = SqlInvoiceStore(database)
    customers = SqlCustomerStore(database)
    payment_provider = MockPaymentProvider(
        customers,
        network_error_rate=settings.payment_provider_network_error_rate,
        decline_rate=settings.payment_provider_decline_rate,
    )

    billing = BillingService(
        invoices=invoices,
        customers=customers,
        payment_provider=payment_provider,
        reporter=RunReporter(),
        statuses=eligible_statuses(settings.billing_retry_error_invoices),
    )
    scheduling = SchedulingService(billing, day_of_month=settings.billing_day_of_month)

    server = ApiServer(
        create_app(billing, scheduling, invoices, customers),
        host=settings.api_host,
        port=settings.api_port,
    )

    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("shutdown_signal_received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    if settings.scheduler_autostart:
        scheduling.start()
    await server.start()

    try:
        await shutdown_event.wait()
    finally:
        logger.info("shutting_down")
        await scheduling.stop()
        await server.stop()
        await database.close()
        logger.info("shutdown_complete")


if __name__ == "__main__":
    asyncio.run(main())
