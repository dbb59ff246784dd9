import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Gauge, Histogram


INVOICES_PROCESSED_TOTAL = Counter(
    "billing_invoices_processed_total",
    "Total number of invoices processed, by resulting status",
    ["status"],
)

BILLING_PASSES_TOTAL = Counter(
    "billing_passes_total",
    "Total number of billing passes, by trigger",
    ["trigger"],
)

BILLING_PASS_FAILURES_TOTAL = Counter(
    "billing_pass_failures_total",
    "Total number of scheduled billing passes that raised unexpectedly",
)

NETWORK_RETRIES_TOTAL = Counter(
    "billing_network_retries_total",
    "Total number of invoices retried after a network error",
)

CURRENCY_ADJUSTMENTS_TOTAL = Counter(
    "billing_currency_adjustments_total",
    "Total number of invoices converted to the customer's currency",
)

BILLING_PASS_DURATION_SECONDS = Histogram(
    "billing_pass_duration_seconds",
    "Billing pass duration",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0],
)

SCHEDULER_RUNNING = Gauge(
    "billing_scheduler_running",
    "1 while the billing scheduler loop is running",
)


P = ParamSpec("P")
R = TypeVar("R")


def track_pass_duration(
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            duration = time.perf_counter() - start
            BILLING_PASS_DURATION_SECONDS.observe(duration)

    return wrapper
