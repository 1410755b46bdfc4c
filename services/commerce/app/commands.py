"""
Commerce Service: command handlers (write side)

Single-resource commands outside the checkout saga: a direct stock
adjustment and the full replacement of an order.
"""

import logging
from datetime import datetime, timezone

from .exceptions import OrderPersistenceError
from .models import Order, OrderStatus, OrderUpdate, Product
from .order_store import OrderStore
from .outcomes import InvalidStatus, NegativeStock, NotFound, Ok, OrderShipped
from .stock_ledger import StockLedger

logger = logging.getLogger(__name__)


async def adjust_stock(
    ledger: StockLedger,
    product_id: str,
    adjustment: int,
) -> Ok[Product] | NotFound | NegativeStock:
    """
    Stock adjustment command

    1. Look the product up, so a missing product costs no write
    2. Apply the adjustment with the non-negative guard
    3. No match despite the product existing means stock would go negative
    """
    product = await ledger.get(product_id)
    if product is None:
        return NotFound("Product", product_id)

    updated = await ledger.adjust(product_id, adjustment)
    if updated is None:
        logger.warning(
            "Stock adjustment rejected for product %s. Adjustment: %s, Current stock: %s",
            product_id,
            adjustment,
            product.stock,
        )
        return NegativeStock(product_id, product.stock, adjustment)

    logger.info(
        "Stock adjusted for product %s: %s. New stock: %s",
        product_id,
        adjustment,
        updated.stock,
    )
    return Ok(updated)


async def update_order(
    orders: OrderStore,
    order_id: str,
    update: OrderUpdate,
) -> Ok[Order] | NotFound | OrderShipped | InvalidStatus:
    """
    Order replacement command

    Shipped orders are frozen. Otherwise every mutable field is overwritten
    with the request, including the total, which is taken as given and not
    recomputed from the lines.
    """
    existing = await orders.get(order_id)
    if existing is None:
        return NotFound("Order", order_id)

    if existing.status.is_terminal:
        return OrderShipped(order_id)

    status = OrderStatus.parse(update.status)
    if status is None:
        return InvalidStatus(update.status)

    replacement = existing.model_copy(
        update={
            "customer_id": update.customer_id,
            "items": list(update.items),
            "status": status,
            "total_amount": update.total_amount,
            "updated_at": datetime.now(timezone.utc),
        }
    )
    stored = await orders.replace(replacement)
    if stored is None:
        raise OrderPersistenceError(order_id)

    logger.info("Order %s replaced (status=%s)", order_id, status.value)
    return Ok(stored)
