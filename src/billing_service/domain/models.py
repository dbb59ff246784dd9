from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import assert_never


class Currency(Enum):
    EUR = "EUR"
    USD = "USD"
    DKK = "DKK"
    SEK = "SEK"
    GBP = "GBP"


class InvoiceStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    NETWORK_ERROR = "NETWORK_ERROR"
    MISSING_FUNDS = "MISSING_FUNDS"
    ERROR = "ERROR"

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses are never picked up by automatic processing."""
        match self:
            case InvoiceStatus.PAID | InvoiceStatus.MISSING_FUNDS:
                return True
            case InvoiceStatus.PENDING | InvoiceStatus.NETWORK_ERROR | InvoiceStatus.ERROR:
                return False
            case _:
                assert_never(self)


@dataclass(frozen=True)
class Money:
    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("Amount must be a Decimal")
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")


@dataclass(frozen=True)
class Customer:
    id: int
    currency: Currency


@dataclass(frozen=True)
class Invoice:
    id: int
    customer_id: int
    amount: Money
    status: InvoiceStatus

    def with_status(self, status: InvoiceStatus) -> "Invoice":
        return replace(self, status=status)

    def with_amount(self, amount: Money) -> "Invoice":
        return replace(self, amount=amount)
