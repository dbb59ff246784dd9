"""Currency conversion through a fixed USD pivot table."""

from decimal import ROUND_HALF_EVEN, Decimal, localcontext

from billing_service.domain.models import Currency, Invoice, Money


REFERENCE_CURRENCY = Currency.USD

# Value of one unit of each currency in USD.
RATES_TO_USD: dict[Currency, Decimal] = {
    Currency.USD: Decimal("1"),
    Currency.EUR: Decimal("1.13"),
    Currency.DKK: Decimal("0.15"),
    Currency.SEK: Decimal("0.11"),
    Currency.GBP: Decimal("1.33"),
}

_PRECISION = 28


def convert(amount: Money, target: Currency) -> Money:
    """Convert ``amount`` into ``target``.

    Returns ``amount`` itself when it is already expressed in ``target``.
    Otherwise the value goes source -> USD -> target. Arithmetic runs in a
    private decimal context so the result does not depend on the caller's
    context settings.
    """
    if amount.currency == target:
        return amount

    with localcontext(prec=_PRECISION, rounding=ROUND_HALF_EVEN):
        in_reference = amount.amount * RATES_TO_USD[amount.currency]
        converted = in_reference / RATES_TO_USD[target]

    return Money(amount=converted, currency=target)


def convert_invoice(invoice: Invoice, target: Currency) -> Invoice:
    if invoice.amount.currency == target:
        return invoice
    return invoice.with_amount(convert(invoice.amount, target))
