"""
Commerce Service: FastAPI entry point

Checkout, order replacement and direct stock adjustment over HTTP. Command
outcomes are mapped to status codes here; everything unexpected ends up in
the global error handler as a 500 with a trace id.
"""

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import Field, field_validator

from . import commands, db, queries
from .config import (
    CREATE_SCHEMA,
    DATABASE_URL,
    EVENT_STREAM_MAXLEN,
    LOG_LEVEL,
    REDIS_URL,
)
from .models import MAX_QUANTITY, CamelModel, CheckoutItem, OrderUpdate
from .notifier import EventPublisher
from .orchestrator import CheckoutOrchestrator
from .order_store import OrderStore
from .outcomes import Failure, Ok
from .stock_ledger import StockLedger

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

engine = db.create_engine(DATABASE_URL)
async_session = db.create_session_factory(engine)
publisher = EventPublisher(REDIS_URL, stream_maxlen=EVENT_STREAM_MAXLEN)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if CREATE_SCHEMA:
        await db.create_schema(engine)
    yield
    await publisher.close()
    await engine.dispose()


app = FastAPI(title="Commerce Service", lifespan=lifespan)


# ── Dependencies ─────────────────────────────────


def get_stock_ledger() -> StockLedger:
    return StockLedger(async_session)


def get_order_store() -> OrderStore:
    return OrderStore(async_session)


def get_publisher() -> EventPublisher:
    return publisher


def get_orchestrator(
    ledger: StockLedger = Depends(get_stock_ledger),
    orders: OrderStore = Depends(get_order_store),
    events: EventPublisher = Depends(get_publisher),
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(ledger, orders, events)


# ── Request Models ───────────────────────────────


class CheckoutRequest(CamelModel):
    customer_id: str = Field(min_length=1)
    items: list[CheckoutItem] = Field(min_length=1)


class StockAdjustmentRequest(CamelModel):
    # Positive adds stock, negative removes it.
    adjustment: int = Field(ge=-MAX_QUANTITY, le=MAX_QUANTITY)

    @field_validator("adjustment")
    @classmethod
    def not_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Adjustment must not be zero.")
        return value


def _error(outcome: Failure) -> JSONResponse:
    return JSONResponse(status_code=outcome.status_code, content={"error": outcome.message})


def _render(outcome: Ok) -> JSONResponse:
    return JSONResponse(
        status_code=outcome.status_code,
        content=outcome.value.model_dump(mode="json", by_alias=True),
    )


# ── Command Endpoints (write side) ───────────────


@app.post("/api/orders/checkout")
async def checkout(
    req: CheckoutRequest,
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
):
    """Reserve stock for every item, create the order, publish order.created."""
    outcome = await orchestrator.execute(req.customer_id, req.items)
    if not outcome.ok:
        return _error(outcome)
    response = _render(outcome)
    response.headers["Location"] = f"/api/orders/{outcome.value.id}"
    return response


@app.put("/api/orders/{order_id}")
async def replace_order(
    order_id: str,
    req: OrderUpdate,
    orders: OrderStore = Depends(get_order_store),
):
    """Full replacement of an order. Shipped orders cannot be changed."""
    outcome = await commands.update_order(orders, order_id, req)
    if not outcome.ok:
        return _error(outcome)
    return _render(outcome)


@app.patch("/api/products/{product_id}/stock")
async def adjust_stock(
    product_id: str,
    req: StockAdjustmentRequest,
    ledger: StockLedger = Depends(get_stock_ledger),
):
    """Direct inventory adjustment. Stock never goes below zero."""
    outcome = await commands.adjust_stock(ledger, product_id, req.adjustment)
    if not outcome.ok:
        return _error(outcome)
    product = outcome.value
    return {
        "productId": product.id,
        "name": product.name,
        "stock": product.stock,
        "updatedAt": product.updated_at.isoformat(),
    }


# ── Query Endpoints (read side) ──────────────────


@app.get("/api/orders/{order_id}")
async def read_order(order_id: str, orders: OrderStore = Depends(get_order_store)):
    outcome = await queries.get_order(orders, order_id)
    if not outcome.ok:
        return _error(outcome)
    return _render(outcome)


@app.get("/api/products/{product_id}")
async def read_product(product_id: str, ledger: StockLedger = Depends(get_stock_ledger)):
    outcome = await queries.get_product(ledger, product_id)
    if not outcome.ok:
        return _error(outcome)
    return _render(outcome)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "commerce-service"}


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    trace_id = uuid4().hex
    logger.error(
        "An unhandled exception occurred while processing %s %s (trace %s)",
        request.method,
        request.url.path,
        trace_id,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "An internal server error occurred.", "traceId": trace_id},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
