from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models import MAX_QUANTITY, CheckoutItem, OrderLine, OrderStatus, OrderUpdate


class TestOrderStatus:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Pending", OrderStatus.PENDING),
            ("paid", OrderStatus.PAID),
            ("SHIPPED", OrderStatus.SHIPPED),
            ("cancelled", OrderStatus.CANCELLED),
        ],
    )
    def test_parse_ignores_case(self, raw, expected):
        assert OrderStatus.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["", "Delivered", "pend"])
    def test_parse_unknown(self, raw):
        assert OrderStatus.parse(raw) is None

    def test_only_shipped_is_terminal(self):
        assert [s for s in OrderStatus if s.is_terminal] == [OrderStatus.SHIPPED]


def test_line_total():
    line = OrderLine(product_id="prod-1", quantity=3, unit_price=Decimal("2.50"))
    assert line.line_total == Decimal("7.50")


def test_camel_case_aliases():
    item = CheckoutItem.model_validate({"productId": "prod-1", "quantity": 2})
    assert item.product_id == "prod-1"
    assert item.model_dump(by_alias=True) == {"productId": "prod-1", "quantity": 2}


@pytest.mark.parametrize("quantity", [0, -1])
def test_quantity_must_be_positive(quantity):
    with pytest.raises(ValidationError):
        CheckoutItem(product_id="prod-1", quantity=quantity)


def test_update_rejects_negative_prices_and_totals():
    with pytest.raises(ValidationError):
        OrderUpdate(
            customer_id="cust-1",
            items=[OrderLine(product_id="prod-1", quantity=1, unit_price=Decimal("1"))],
            status="Paid",
            total_amount=Decimal("-1"),
        )
    with pytest.raises(ValidationError):
        OrderLine(product_id="prod-1", quantity=1, unit_price=Decimal("-0.01"))


@pytest.mark.parametrize("price", ["10.005", "0.001"])
def test_prices_are_limited_to_cents(price):
    with pytest.raises(ValidationError):
        OrderLine(product_id="prod-1", quantity=1, unit_price=Decimal(price))


def test_whitespace_only_identifiers_are_rejected():
    with pytest.raises(ValidationError):
        CheckoutItem(product_id="   ", quantity=1)
    assert CheckoutItem(product_id=" prod-1 ", quantity=1).product_id == "prod-1"


def test_quantity_fits_stock_column():
    assert CheckoutItem(product_id="prod-1", quantity=MAX_QUANTITY).quantity == MAX_QUANTITY
    with pytest.raises(ValidationError):
        CheckoutItem(product_id="prod-1", quantity=MAX_QUANTITY + 1)
