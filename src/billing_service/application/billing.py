import asyncio
from collections.abc import Iterable
from dataclasses import asdict

import structlog

from billing_service.application.ports import CustomerStore, InvoiceStore, PaymentProvider
from billing_service.application.reporting import RunReporter
from billing_service.domain.currency import convert_invoice
from billing_service.domain.exceptions import (
    CurrencyMismatchError,
    CustomerNotFoundError,
    NetworkError,
)
from billing_service.domain.models import Invoice, InvoiceStatus
from billing_service.infrastructure.metrics import (
    BILLING_PASSES_TOTAL,
    CURRENCY_ADJUSTMENTS_TOTAL,
    INVOICES_PROCESSED_TOTAL,
    NETWORK_RETRIES_TOTAL,
    track_pass_duration,
)


logger = structlog.get_logger()


def eligible_statuses(retry_error_invoices: bool = True) -> frozenset[InvoiceStatus]:
    """Statuses picked up by a billing pass.

    ERROR invoices are only re-included when ``retry_error_invoices`` is set;
    otherwise they wait for an explicit reset to PENDING.
    """
    statuses = {status for status in InvoiceStatus if not status.is_terminal}
    if not retry_error_invoices:
        statuses.discard(InvoiceStatus.ERROR)
    return frozenset(statuses)


class BillingService:
    """Charges outstanding invoices through the payment provider.

    A pass fetches every eligible invoice, processes each one, then retries
    once the invoices that ended in NETWORK_ERROR. MISSING_FUNDS invoices are
    never retried automatically because a charge was genuinely attempted.

    ``handle_payments`` and ``handle_invoice`` share one lock, so a scheduled
    pass and an operator triggered charge never work on invoices at the same
    time.
    """

    def __init__(
        self,
        invoices: InvoiceStore,
        customers: CustomerStore,
        payment_provider: PaymentProvider,
        reporter: RunReporter,
        statuses: Iterable[InvoiceStatus] | None = None,
    ) -> None:
        self.invoices = invoices
        self.customers = customers
        self.payment_provider = payment_provider
        self.reporter = reporter
        self._statuses = frozenset(statuses) if statuses is not None else eligible_statuses()
        self._lock = asyncio.Lock()

    @property
    def statuses(self) -> frozenset[InvoiceStatus]:
        return self._statuses

    def is_busy(self) -> bool:
        return self._lock.locked()

    @track_pass_duration
    async def handle_payments(self, trigger: str = "manual") -> list[Invoice]:
        log = logger.bind(trigger=trigger)
        log.info("billing_pass_requested")

        async with self._lock:
            BILLING_PASSES_TOTAL.labels(trigger=trigger).inc()
            self.reporter.reset()

            invoices = await self.invoices.fetch_by_statuses(self._statuses)
            log.info(
                "billing_pass_started",
                eligible=len(invoices),
                statuses=sorted(status.value for status in self._statuses),
                already_paid=await self.invoices.count_by_status(InvoiceStatus.PAID),
                missing_funds=await self.invoices.count_by_status(InvoiceStatus.MISSING_FUNDS),
            )

            processed: list[Invoice] = []
            to_retry: list[Invoice] = []

            for invoice in invoices:
                result = await self.process_invoice(invoice)
                if result.status == InvoiceStatus.NETWORK_ERROR:
                    to_retry.append(result)
                    self.reporter.note_network_retry()
                    NETWORK_RETRIES_TOTAL.inc()
                self._record(result)
                processed.append(result)

            log.info("billing_first_sweep_completed", step="1/2", to_retry=len(to_retry))

            for invoice in to_retry:
                result = await self.process_invoice(invoice)
                self._record(result)
                processed.append(result)

            summary = self.reporter.summary()
            log.info("billing_pass_completed", step="2/2", total=summary.total, **asdict(summary))

        return processed

    async def handle_invoice(self, invoice_id: int) -> Invoice:
        log = logger.bind(invoice_id=invoice_id)

        async with self._lock:
            log.info("invoice_charge_requested")
            self.reporter.reset()

            invoice = await self.invoices.fetch(invoice_id)
            result = await self.process_invoice(invoice)
            self._record(result)

            log.info("invoice_charge_completed", status=result.status.value)

        return result

    async def process_invoice(self, invoice: Invoice) -> Invoice:
        """Charge one invoice and persist its new status.

        Must only be called while holding the billing lock. Payment provider
        failures are translated into statuses and never raised.
        """
        log = logger.bind(
            invoice_id=invoice.id,
            customer_id=invoice.customer_id,
            amount=str(invoice.amount.amount),
            currency=invoice.amount.currency.value,
            status=invoice.status.value,
        )

        if invoice.status == InvoiceStatus.PAID:
            log.debug("invoice_already_paid")
            return invoice

        try:
            customer = await self.customers.fetch(invoice.customer_id)
        except CustomerNotFoundError:
            log.warning("invoice_customer_missing")
            return await self._save(invoice.with_status(InvoiceStatus.ERROR))

        if customer.currency != invoice.amount.currency:
            log.info("invoice_currency_adjusted", target_currency=customer.currency.value)
            invoice = convert_invoice(invoice, customer.currency)
            self.reporter.note_currency_adjustment()
            CURRENCY_ADJUSTMENTS_TOTAL.inc()

        try:
            settled = await self.payment_provider.charge(invoice)
            status = InvoiceStatus.PAID if settled else InvoiceStatus.MISSING_FUNDS
        except CurrencyMismatchError:
            log.warning("invoice_currency_mismatch")
            status = InvoiceStatus.ERROR
        except CustomerNotFoundError:
            log.warning("invoice_customer_unknown_to_provider")
            status = InvoiceStatus.ERROR
        except NetworkError:
            log.warning("invoice_network_error")
            status = InvoiceStatus.NETWORK_ERROR

        log.debug("invoice_charged", new_status=status.value)
        return await self._save(invoice.with_status(status))

    async def _save(self, invoice: Invoice) -> Invoice:
        await self.invoices.update(invoice)
        return invoice

    def _record(self, invoice: Invoice) -> None:
        self.reporter.record(invoice)
        INVOICES_PROCESSED_TOTAL.labels(status=invoice.status.value).inc()
