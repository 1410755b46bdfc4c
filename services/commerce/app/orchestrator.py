"""
Commerce Service: checkout saga orchestrator

There is no transaction spanning products and orders. Each step is an
independent atomic write, and the orchestrator remembers what it has done so
it can undo it (compensating transactions).

  Flow:
  ┌──────────────────────────────────────────────────────────────┐
  │  1. For each item, in order: guarded stock decrement          │
  │     ├─ success → remember (product, qty), add order line     │
  │     └─ no match → NotFound / InsufficientStock               │
  │                   + give back every remembered decrement     │
  │  2. Create the order (PENDING)                               │
  │     └─ fault → give back every decrement, re-raise           │
  │  3. Publish order.created                                    │
  │     └─ fault → re-raise, order stays (no compensation)       │
  └──────────────────────────────────────────────────────────────┘

Items are processed strictly one after another so the rollback ledger has a
well-defined order. A failing compensation is logged and the remaining ones
still run; nothing is retried.
"""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from .config import ORDER_CREATED_EVENT
from .events import OrderCreated
from .models import CheckoutItem, Order, OrderLine, OrderStatus
from .notifier import EventPublisher
from .order_store import OrderStore
from .outcomes import Created, InsufficientStock, NotFound
from .stock_ledger import StockLedger

logger = logging.getLogger(__name__)

# Rollbacks still running after their checkout was cancelled.
_rollbacks: set[asyncio.Task] = set()

CheckoutOutcome = Created[Order] | NotFound | InsufficientStock


class CheckoutOrchestrator:
    """Checkout saga orchestrator."""

    def __init__(
        self,
        ledger: StockLedger,
        orders: OrderStore,
        publisher: EventPublisher,
    ):
        self.ledger = ledger
        self.orders = orders
        self.publisher = publisher

    async def execute(
        self,
        customer_id: str,
        items: Sequence[CheckoutItem],
    ) -> CheckoutOutcome:
        """
        Run the checkout saga.

        Expected failures come back as outcomes. Infrastructure faults are
        raised, after compensation when they happen before the order exists.
        """
        saga_log: list[dict] = []
        reserved: list[tuple[str, int]] = []
        lines: list[OrderLine] = []

        try:
            # ── Step 1: reserve stock ───────────────────
            for item in items:
                step = _begin(saga_log, "ReserveStock", item.product_id, item.quantity)
                product = await self.ledger.decrement_if_sufficient(
                    item.product_id, item.quantity
                )
                if product is None:
                    step["status"] = "FAILED"
                    failure = await self._explain_rejection(item)
                    logger.warning(
                        "Checkout failed for customer %s: %s",
                        customer_id,
                        failure.message,
                    )
                    await self._compensate(reserved, saga_log)
                    return failure

                step["status"] = "COMPLETED"
                reserved.append((item.product_id, item.quantity))
                # Catalog price at decrement time, never a caller-supplied one.
                lines.append(
                    OrderLine(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=product.price,
                    )
                )

            # ── Step 2: create the order ────────────────
            step = _begin(saga_log, "CreateOrder")
            now = datetime.now(timezone.utc)
            order = await self.orders.create(
                Order(
                    id=str(uuid4()),
                    customer_id=customer_id,
                    items=lines,
                    status=OrderStatus.PENDING,
                    total_amount=sum((line.line_total for line in lines), Decimal("0")),
                    created_at=now,
                    updated_at=now,
                )
            )
            step["status"] = "COMPLETED"
        except (Exception, asyncio.CancelledError):
            logger.exception("Unexpected error during checkout. Rolling back stock decrements.")
            await self._compensate(reserved, saga_log)
            raise

        # ── Step 3: notify ──────────────────────────
        # The order is committed; a publish failure propagates as is.
        step = _begin(saga_log, "PublishOrderCreated")
        event = OrderCreated.from_order(order)
        await self.publisher.publish(
            ORDER_CREATED_EVENT, event.model_dump(mode="json", by_alias=True)
        )
        step["status"] = "COMPLETED"

        logger.info(
            "Order %s created successfully for customer %s. Total: %s",
            order.id,
            order.customer_id,
            order.total_amount,
        )
        logger.debug("Checkout saga log for order %s: %s", order.id, saga_log)
        return Created(order)

    async def _explain_rejection(self, item: CheckoutItem) -> NotFound | InsufficientStock:
        """Tell a missing product apart from a failed stock guard."""
        existing = await self.ledger.get(item.product_id)
        if existing is None:
            return NotFound("Product", item.product_id)
        return InsufficientStock(
            product_id=existing.id,
            product_name=existing.name,
            sku=existing.sku,
            requested=item.quantity,
            available=existing.stock,
        )

    async def _compensate(self, reserved: list[tuple[str, int]], saga_log: list[dict]) -> None:
        # The ledger is drained first so a decrement is given back at most once.
        pending = list(reserved)
        reserved.clear()
        if not pending:
            return
        # Shielded: once started, the rollback is not interrupted by cancellation.
        rollback = asyncio.create_task(self._release_all(pending, saga_log))
        _rollbacks.add(rollback)
        rollback.add_done_callback(_rollbacks.discard)
        await asyncio.shield(rollback)

    async def _release_all(self, reserved: list[tuple[str, int]], saga_log: list[dict]) -> None:
        for product_id, quantity in reserved:
            step = _begin(saga_log, "ReleaseStock (COMPENSATING)", product_id, quantity)
            try:
                await self.ledger.increment(product_id, quantity)
            except Exception:
                step["status"] = "FAILED"
                logger.exception(
                    "Failed to rollback stock for product %s: +%s", product_id, quantity
                )
                continue
            step["status"] = "COMPLETED"
            logger.info("Rolled back stock for product %s: +%s", product_id, quantity)


def _begin(
    saga_log: list[dict],
    action: str,
    product_id: str | None = None,
    quantity: int | None = None,
) -> dict:
    step = {
        "step": len(saga_log) + 1,
        "action": action,
        "status": "EXECUTING",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if product_id is not None:
        step["product_id"] = product_id
        step["quantity"] = quantity
    saga_log.append(step)
    return step
