"""
Commerce Service: domain models

Product is the inventory record, Order the result of a checkout. Both are
serialized with camelCase keys on the wire.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Stock is a 32-bit integer column.
MAX_QUANTITY = 2**31 - 1


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class OrderStatus(str, Enum):
    """
    Order lifecycle.

        PENDING → PAID | CANCELLED → SHIPPED

    SHIPPED is terminal: a shipped order can no longer be replaced.
    """

    PENDING = "Pending"
    PAID = "Paid"
    SHIPPED = "Shipped"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is OrderStatus.SHIPPED

    @classmethod
    def parse(cls, value: str) -> "OrderStatus | None":
        """Case-insensitive lookup by name. Returns None for unknown values."""
        wanted = value.strip().lower()
        for status in cls:
            if status.value.lower() == wanted:
                return status
        return None


class Product(CamelModel):
    id: str
    name: str
    sku: str
    stock: int
    price: Decimal
    updated_at: datetime


class OrderLine(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0, le=MAX_QUANTITY)
    # Copied from the catalog when the line was reserved.
    unit_price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


class Order(CamelModel):
    id: str
    customer_id: str
    items: list[OrderLine]
    status: OrderStatus
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime


# ── Commands ─────────────────────────────────────


class CheckoutItem(CamelModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class OrderUpdate(CamelModel):
    """Full replacement of an order's mutable fields."""

    customer_id: str = Field(min_length=1)
    items: list[OrderLine] = Field(min_length=1)
    # Parsed by the update guard so that an unknown value maps to 400, not 422.
    status: str = Field(min_length=1)
    total_amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
