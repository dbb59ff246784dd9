class DomainError(Exception):
    """Base exception for domain errors."""


class InvoiceNotFoundError(DomainError):
    """Raised when an invoice cannot be found."""

    def __init__(self, invoice_id: int) -> None:
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} not found")


class CustomerNotFoundError(DomainError):
    """Raised when a customer cannot be found."""

    def __init__(self, customer_id: int) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer {customer_id} not found")


class CurrencyMismatchError(DomainError):
    """Raised by the payment provider when invoice and customer currencies differ."""

    def __init__(self, invoice_id: int, customer_id: int) -> None:
        self.invoice_id = invoice_id
        self.customer_id = customer_id
        super().__init__(f"Currency of invoice {invoice_id} does not match customer {customer_id}")


class NetworkError(DomainError):
    """Raised by the payment provider on a transient network failure."""

    def __init__(self, invoice_id: int) -> None:
        self.invoice_id = invoice_id
        super().__init__(f"Network failure while charging invoice {invoice_id}")
