"""
Commerce Service: query handlers (read side)
"""

from .models import Order, Product
from .order_store import OrderStore
from .outcomes import NotFound, Ok
from .stock_ledger import StockLedger


async def get_order(orders: OrderStore, order_id: str) -> Ok[Order] | NotFound:
    order = await orders.get(order_id)
    if order is None:
        return NotFound("Order", order_id)
    return Ok(order)


async def get_product(ledger: StockLedger, product_id: str) -> Ok[Product] | NotFound:
    product = await ledger.get(product_id)
    if product is None:
        return NotFound("Product", product_id)
    return Ok(product)
