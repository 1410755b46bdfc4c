"""
Shared pytest fixtures for the commerce service tests.

Stores run against a throwaway SQLite database (aiosqlite) so that the
guarded UPDATE ... RETURNING statements are exercised for real. The event
publisher is replaced by an in-memory recorder.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["CREATE_SCHEMA"] = "false"

from collections.abc import Awaitable, Callable  # noqa: E402
from datetime import datetime, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import insert, select  # noqa: E402

from app import db  # noqa: E402
from app.exceptions import NotificationError  # noqa: E402
from app.models import Order, OrderLine, OrderStatus  # noqa: E402
from app.order_store import OrderStore  # noqa: E402
from app.stock_ledger import StockLedger  # noqa: E402


class RecordingPublisher:
    """Stands in for EventPublisher and keeps every published event."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict]] = []
        self.fail_with: Exception | None = None

    async def publish(self, event_name: str, payload: dict) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append((event_name, payload))
        return f"{len(self.published)}-0"

    async def close(self) -> None:
        pass


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
async def engine(tmp_path):
    engine = db.create_engine(f"sqlite+aiosqlite:///{tmp_path / 'commerce.db'}")
    await db.create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return db.create_session_factory(engine)


@pytest.fixture
def ledger(session_factory) -> StockLedger:
    return StockLedger(session_factory)


@pytest.fixture
def order_store(session_factory) -> OrderStore:
    return OrderStore(session_factory)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def failing_publisher() -> RecordingPublisher:
    recorder = RecordingPublisher()
    recorder.fail_with = NotificationError("order.created", "broker unreachable")
    return recorder


# ============================================================================
# Seed data
# ============================================================================


@pytest.fixture
def add_product(session_factory) -> Callable[..., Awaitable[None]]:
    async def _add(
        product_id: str,
        stock: int,
        price: str = "10.00",
        name: str | None = None,
        sku: str | None = None,
    ) -> None:
        async with session_factory() as session:
            await session.execute(
                insert(db.products).values(
                    id=product_id,
                    name=name or f"Product {product_id}",
                    sku=sku or product_id.upper(),
                    stock=stock,
                    price=Decimal(price),
                    updated_at=datetime.now(timezone.utc),
                )
            )
            await session.commit()

    return _add


@pytest.fixture
def stock_of(session_factory) -> Callable[[str], Awaitable[int]]:
    async def _stock(product_id: str) -> int:
        async with session_factory() as session:
            result = await session.execute(
                select(db.products.c.stock).where(db.products.c.id == product_id)
            )
            return result.scalar_one()

    return _stock


@pytest.fixture
def make_order() -> Callable[..., Order]:
    def _make(
        order_id: str = "order-123",
        status: OrderStatus = OrderStatus.PENDING,
    ) -> Order:
        now = datetime.now(timezone.utc)
        return Order(
            id=order_id,
            customer_id="cust-1",
            items=[OrderLine(product_id="prod-1", quantity=2, unit_price=Decimal("10.00"))],
            status=status,
            total_amount=Decimal("20.00"),
            created_at=now,
            updated_at=now,
        )

    return _make
