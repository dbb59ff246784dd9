import asyncio
import contextlib
from datetime import UTC, datetime
from typing import Protocol

import structlog

from billing_service.application.billing import BillingService
from billing_service.infrastructure.metrics import BILLING_PASS_FAILURES_TOTAL, SCHEDULER_RUNNING


logger = structlog.get_logger()


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(UTC)


def next_billing_boundary(now: datetime, day_of_month: int = 1) -> datetime:
    """Return midnight of the next ``day_of_month`` strictly after today.

    December rolls over into January of the following year.
    """
    candidate = now.replace(day=day_of_month, hour=0, minute=0, second=0, microsecond=0)
    if candidate.date() > now.date():
        return candidate
    if now.month == 12:
        return candidate.replace(year=now.year + 1, month=1)
    return candidate.replace(month=now.month + 1)


class SchedulingService:
    """
    Triggers a billing pass on the configured day of every month.

    The loop runs as an asyncio task. Between passes it waits on a stop event
    with a timeout equal to the time left until the next boundary, so stop()
    wakes it immediately instead of waiting for the sleep to run out. A pass
    that is already running is allowed to finish, and the scheduler counts as
    running until the loop has exited. Each run gets its own stop event.
    """

    def __init__(
        self,
        billing: BillingService,
        clock: Clock | None = None,
        day_of_month: int = 1,
    ) -> None:
        if not 1 <= day_of_month <= 28:
            raise ValueError("day_of_month must be between 1 and 28")
        self._billing = billing
        self._clock = clock or SystemClock()
        self._day_of_month = day_of_month
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    def start(self) -> bool:
        """Start the scheduling loop.

        Returns:
            True if the loop was started, False if it was already running.
        """
        if self._task is not None:
            logger.info("scheduler_already_running")
            return False

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stop_event), name="billing-scheduler")
        SCHEDULER_RUNNING.set(1)
        logger.info("scheduler_started", day_of_month=self._day_of_month)
        return True

    async def stop(self) -> bool:
        """Stop the scheduling loop and wait for it to exit.

        Returns:
            True if the loop was stopped, False if it was not running.
        """
        if self._task is None:
            return False

        logger.info("scheduler_stopping")
        task = self._task
        self._stop_event.set()
        with contextlib.suppress(asyncio.CancelledError):
            await task

        if self._task is not task:
            return False

        self._task = None
        SCHEDULER_RUNNING.set(0)
        logger.info("scheduler_stopped")
        return True

    def status(self) -> bool:
        return self._task is not None

    def is_billing_day(self, now: datetime) -> bool:
        return now.day == self._day_of_month

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            now = self._clock.now()

            if self.is_billing_day(now):
                await self._run_pass()
                now = self._clock.now()

            boundary = next_billing_boundary(now, self._day_of_month)
            delay = max((boundary - now).total_seconds(), 0.0)
            logger.info("scheduler_sleeping", next_run_at=boundary.isoformat(), delay_seconds=delay)

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
            except TimeoutError:
                continue

    async def _run_pass(self) -> None:
        try:
            await self._billing.handle_payments(trigger="scheduled")
        except Exception as e:
            BILLING_PASS_FAILURES_TOTAL.inc()
            logger.error("scheduled_billing_pass_failed", error=str(e), exc_info=True)
