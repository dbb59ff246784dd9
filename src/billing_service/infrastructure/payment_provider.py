import random

import structlog

from billing_service.application.ports import CustomerStore
from billing_service.domain.exceptions import CurrencyMismatchError, NetworkError
from billing_service.domain.models import Invoice


logger = structlog.get_logger()


class MockPaymentProvider:
    """
    Stand-in for the external payment provider.

    Behaves like the real one at its contract boundary:
    - rejects invoices whose currency differs from the customer's
    - fails with a transient network error now and then
    - otherwise settles or declines the charge at random
    """

    def __init__(
        self,
        customers: CustomerStore,
        network_error_rate: float = 1 / 9,
        decline_rate: float = 1 / 9,
        rng: random.Random | None = None,
    ) -> None:
        self._customers = customers
        self._network_error_rate = network_error_rate
        self._decline_rate = decline_rate
        self._rng = rng or random.Random()

    async def charge(self, invoice: Invoice) -> bool:
        customer = await self._customers.fetch(invoice.customer_id)
        if customer.currency != invoice.amount.currency:
            raise CurrencyMismatchError(invoice.id, invoice.customer_id)

        if self._rng.random() < self._network_error_rate:
            raise NetworkError(invoice.id)

        settled = self._rng.random() >= self._decline_rate
        logger.debug("provider_charge", invoice_id=invoice.id, settled=settled)
        return settled
