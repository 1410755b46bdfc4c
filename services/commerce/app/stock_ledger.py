"""
Commerce Service: stock ledger

Every stock mutation is one guarded UPDATE ... RETURNING statement that runs
in its own session and commits on its own. The database re-checks the guard
against the latest row version, so two concurrent checkouts on the same
product cannot both take the last unit and stock never goes below zero.
No locks are taken in the application.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import ColumnElement, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .db import products
from .models import Product

logger = logging.getLogger(__name__)


class StockLedger:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, product_id: str) -> Product | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(products).where(products.c.id == product_id)
            )
            row = result.fetchone()
        return _to_product(row) if row else None

    async def decrement_if_sufficient(self, product_id: str, quantity: int) -> Product | None:
        """
        stock -= quantity, only while stock >= quantity.

        Returns the updated product, or None when the product is missing or
        the guard failed. The two cases are not distinguished here.
        """
        product = await self._apply(
            product_id, -quantity, guard=products.c.stock >= quantity
        )
        if product is None:
            logger.warning(
                "Failed to decrement stock for product %s by %s: "
                "insufficient stock or product not found",
                product_id,
                quantity,
            )
        return product

    async def increment(self, product_id: str, quantity: int) -> None:
        """
        Unconditional stock += quantity. Used to compensate a decrement.

        Not idempotent: call it at most once per successful decrement.
        """
        product = await self._apply(product_id, quantity)
        if product is None:
            logger.warning("Stock increment matched no product %s", product_id)

    async def adjust(self, product_id: str, adjustment: int) -> Product | None:
        """
        stock += adjustment. Negative adjustments carry the same guard as
        decrement_if_sufficient; positive ones are applied unconditionally.
        """
        guard = products.c.stock >= -adjustment if adjustment < 0 else None
        return await self._apply(product_id, adjustment, guard=guard)

    async def _apply(
        self,
        product_id: str,
        delta: int,
        guard: ColumnElement[bool] | None = None,
    ) -> Product | None:
        stmt = (
            update(products)
            .where(products.c.id == product_id)
            .values(
                stock=products.c.stock + delta,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(*products.c)
        )
        if guard is not None:
            stmt = stmt.where(guard)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            row = result.fetchone()
            await session.commit()
        return _to_product(row) if row else None


def _to_product(row) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        sku=row.sku,
        stock=row.stock,
        price=row.price,
        updated_at=row.updated_at,
    )
