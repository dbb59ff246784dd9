"""Application layer - billing orchestration and scheduling."""

from billing_service.application.billing import BillingService, eligible_statuses
from billing_service.application.reporting import RunReporter, RunSummary
from billing_service.application.scheduling import (
    Clock,
    SchedulingService,
    SystemClock,
    next_billing_boundary,
)
from billing_service.application.unit_of_work import UnitOfWork


__all__ = [
    "BillingService",
    "Clock",
    "RunReporter",
    "RunSummary",
    "SchedulingService",
    "SystemClock",
    "UnitOfWork",
    "eligible_statuses",
    "next_billing_boundary",
]
