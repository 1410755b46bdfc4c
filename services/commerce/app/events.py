"""
Commerce Service: event definitions

Events are named in the past tense and never mutated after publishing.
"""

from datetime import datetime
from decimal import Decimal

from .models import CamelModel, Order


class OrderCreated(CamelModel):
    """An order was durably created by checkout."""

    order_id: str
    customer_id: str
    total_amount: Decimal
    item_count: int
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderCreated":
        return cls(
            order_id=order.id,
            customer_id=order.customer_id,
            total_amount=order.total_amount,
            item_count=len(order.items),
            created_at=order.created_at,
        )
