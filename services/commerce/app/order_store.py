"""
Commerce Service: order store

Orders are written whole: once on creation and afterwards only by full
replacement. Lines are embedded as JSON with prices kept as strings so no
precision is lost.
"""

from decimal import Decimal

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db import orders
from .models import Order, OrderLine, OrderStatus


class OrderStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, order_id: str) -> Order | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(orders).where(orders.c.id == order_id)
            )
            row = result.fetchone()
        return _to_order(row) if row else None

    async def create(self, order: Order) -> Order:
        async with self._session_factory() as session:
            await session.execute(insert(orders).values(**_to_row(order)))
            await session.commit()
        return order

    async def replace(self, order: Order) -> Order | None:
        """Overwrite every column of an existing order. None if no row matched."""
        values = _to_row(order)
        del values["id"]
        async with self._session_factory() as session:
            result = await session.execute(
                update(orders).where(orders.c.id == order.id).values(**values)
            )
            matched = result.rowcount
            await session.commit()
        return order if matched > 0 else None


def _to_row(order: Order) -> dict:
    return {
        "id": order.id,
        "customer_id": order.customer_id,
        "items": [
            {
                "product_id": line.product_id,
                "quantity": line.quantity,
                "unit_price": str(line.unit_price),
            }
            for line in order.items
        ],
        "status": order.status.value,
        "total_amount": order.total_amount,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def _to_order(row) -> Order:
    return Order(
        id=row.id,
        customer_id=row.customer_id,
        items=[
            OrderLine(
                product_id=item["product_id"],
                quantity=item["quantity"],
                unit_price=Decimal(item["unit_price"]),
            )
            for item in row.items
        ],
        status=OrderStatus(row.status),
        total_amount=row.total_amount,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
