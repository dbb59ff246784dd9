from dataclasses import dataclass

from billing_service.domain.models import Invoice, InvoiceStatus


@dataclass(frozen=True)
class RunSummary:
    pending: int
    paid: int
    network_error: int
    missing_funds: int
    error: int
    network_retries: int
    currency_adjustments: int

    @property
    def total(self) -> int:
        return self.pending + self.paid + self.network_error + self.missing_funds + self.error


class RunReporter:
    """Keeps track of the outcome of a single billing run."""

    def __init__(self) -> None:
        self._buckets: dict[InvoiceStatus, list[Invoice]] = {status: [] for status in InvoiceStatus}
        self._network_retries = 0
        self._currency_adjustments = 0

    def reset(self) -> None:
        for bucket in self._buckets.values():
            bucket.clear()
        self._network_retries = 0
        self._currency_adjustments = 0

    def record(self, invoice: Invoice) -> None:
        self._buckets[invoice.status].append(invoice)

    def note_network_retry(self) -> None:
        self._network_retries += 1

    def note_currency_adjustment(self) -> None:
        self._currency_adjustments += 1

    def invoices(self, status: InvoiceStatus) -> list[Invoice]:
        return list(self._buckets[status])

    def summary(self) -> RunSummary:
        return RunSummary(
            pending=len(self._buckets[InvoiceStatus.PENDING]),
            paid=len(self._buckets[InvoiceStatus.PAID]),
            network_error=len(self._buckets[InvoiceStatus.NETWORK_ERROR]),
            missing_funds=len(self._buckets[InvoiceStatus.MISSING_FUNDS]),
            error=len(self._buckets[InvoiceStatus.ERROR]),
            network_retries=self._network_retries,
            currency_adjustments=self._currency_adjustments,
        )
