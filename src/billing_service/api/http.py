import asyncio
import contextlib
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from billing_service.application.billing import BillingService
from billing_service.application.ports import CustomerStore, InvoiceStore
from billing_service.application.scheduling import SchedulingService
from billing_service.domain.exceptions import CustomerNotFoundError, InvoiceNotFoundError
from billing_service.domain.models import Customer, Invoice, InvoiceStatus


logger = structlog.get_logger()


def invoice_to_dict(invoice: Invoice) -> dict[str, Any]:
    return {
        "id": invoice.id,
        "customer_id": invoice.customer_id,
        "amount": {
            "value": str(invoice.amount.amount),
            "currency": invoice.amount.currency.value,
        },
        "status": invoice.status.value,
    }


def customer_to_dict(customer: Customer) -> dict[str, Any]:
    return {"id": customer.id, "currency": customer.currency.value}


def create_app(
    billing: BillingService,
    scheduling: SchedulingService,
    invoices: InvoiceStore,
    customers: CustomerStore,
) -> FastAPI:
    """Create the REST application exposing billing controls and reads."""
    app = FastAPI(title="Billing Service", docs_url=None, redoc_url=None)

    @app.exception_handler(InvoiceNotFoundError)
    async def invoice_not_found(request: Request, exc: InvoiceNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(CustomerNotFoundError)
    async def customer_not_found(request: Request, exc: CustomerNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.get("/rest/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics() -> PlainTextResponse:
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.post("/rest/v1/billing/pay-all")
    async def pay_all() -> list[dict[str, Any]]:
        return [invoice_to_dict(invoice) for invoice in await billing.handle_payments()]

    @app.post("/rest/v1/billing/invoices/{invoice_id}/pay")
    async def pay_invoice(invoice_id: int) -> dict[str, Any]:
        return invoice_to_dict(await billing.handle_invoice(invoice_id))

    @app.post("/rest/v1/scheduling/start")
    async def start_scheduler() -> dict[str, bool]:
        return {"changed": scheduling.start()}

    @app.post("/rest/v1/scheduling/stop")
    async def stop_scheduler() -> dict[str, bool]:
        return {"changed": await scheduling.stop()}

    @app.get("/rest/v1/scheduling/status")
    async def scheduler_status() -> dict[str, bool]:
        return {"running": scheduling.status()}

    @app.get("/rest/v1/invoices")
    async def list_invoices() -> list[dict[str, Any]]:
        return [invoice_to_dict(invoice) for invoice in await invoices.fetch_all()]

    @app.get("/rest/v1/invoices/status/{status}")
    async def list_invoices_by_status(status: InvoiceStatus) -> list[dict[str, Any]]:
        return [invoice_to_dict(invoice) for invoice in await invoices.fetch_by_statuses([status])]

    @app.post("/rest/v1/invoices/reset-errors")
    async def reset_errors() -> dict[str, int]:
        reset = await invoices.reset_errors()
        logger.info("invoice_errors_reset", count=reset)
        return {"reset": reset}

    @app.get("/rest/v1/invoices/{invoice_id}")
    async def get_invoice(invoice_id: int) -> dict[str, Any]:
        return invoice_to_dict(await invoices.fetch(invoice_id))

    @app.get("/rest/v1/customers")
    async def list_customers() -> list[dict[str, Any]]:
        return [customer_to_dict(customer) for customer in await customers.fetch_all()]

    @app.get("/rest/v1/customers/{customer_id}")
    async def get_customer(customer_id: int) -> dict[str, Any]:
        return customer_to_dict(await customers.fetch(customer_id))

    return app


class ApiServer:
    """Runs the REST application under uvicorn as a background task."""

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 7000) -> None:
        self._app = app
        self._host = host
        self._port = port
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        config = uvicorn.Config(
            self._app,
            host=self._host,
            port=self._port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        self._task = asyncio.create_task(self._server.serve())
        logger.info("api_server_started", host=self._host, port=self._port)

    async def stop(self) -> None:
        if self._server:
            self._server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except TimeoutError:
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None

        logger.info("api_server_stopped")
