from decimal import Decimal

import pytest

from canteen.models import (
    MenuItem,
    Order,
    OrderDraft,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    to_money,
)


def test_payment_method_parses_values_and_labels():
    assert PaymentMethod.parse("QRCode") is PaymentMethod.QR_CODE
    assert PaymentMethod.parse("Cash on Delivery") is PaymentMethod.CASH_ON_DELIVERY
    assert PaymentMethod.parse("upi app") is PaymentMethod.UPI_APP
    assert PaymentMethod.parse(PaymentMethod.UPI_APP) is PaymentMethod.UPI_APP
    with pytest.raises(ValueError):
        PaymentMethod.parse("Card")


@pytest.mark.parametrize("method, expected", [
    (PaymentMethod.CASH_ON_DELIVERY, OrderStatus.PENDING),
    (PaymentMethod.QR_CODE, OrderStatus.PAID),
    (PaymentMethod.UPI_APP, OrderStatus.PAID),
])
def test_initial_status(method, expected):
    assert OrderStatus.initial_for(method) is expected


def test_status_transitions():
    assert OrderStatus.PENDING.can_advance_to("paid")
    assert OrderStatus.PENDING.can_advance_to(OrderStatus.COMPLETED)
    assert OrderStatus.PAID.can_advance_to(OrderStatus.COMPLETED)
    assert not OrderStatus.PAID.can_advance_to(OrderStatus.PENDING)
    assert not OrderStatus.COMPLETED.can_advance_to(OrderStatus.PAID)
    assert OrderStatus.COMPLETED.is_terminal
    assert not OrderStatus.PENDING.is_terminal


def test_menu_item_round_trips_through_item_shape():
    item = MenuItem("poori", "poori", "morning_food", 18, 7, version=2)
    stored = item.to_item()
    assert stored["price"] == Decimal("18.00")
    assert stored["stock_version"] == 2
    # DynamoDBClient hands numbers back as int/float
    back = MenuItem.from_item(dict(stored, price=18, available_quantity=7))
    assert back == MenuItem("poori", "poori", "morning_food", Decimal("18.00"), 7, 2)
    assert not back.out_of_stock
    assert MenuItem("tea", "Tea", "drink", 12, 0).out_of_stock


def test_order_line_total():
    line = OrderLine("poori", "poori", to_money(18), 2)
    assert line.line_total == Decimal("36.00")


def test_order_from_item_restores_types():
    draft = OrderDraft(
        order_id="ABC123",
        bill_id="XYZ789",
        customer_ref="21BCE1234",
        lines=(OrderLine("dosai", "dosai", to_money(20), 1),),
        total_amount=to_money(20),
        payment_method=PaymentMethod.QR_CODE,
        status=OrderStatus.PAID,
        queue_position=1000,
        transaction_id="LOYW3V28ABCDEF",
    )
    order = Order.from_draft(draft, doc_id="d1", created_at="2026-10-19T00:00:00+00:00")
    item = order.to_item()
    item["total_amount"] = 20
    item["lines"][0]["unit_price"] = 20

    back = Order.from_item(item)
    assert back == order
    assert back.payment_method is PaymentMethod.QR_CODE
    assert back.status is OrderStatus.PAID
    assert order.to_dict()["total_amount"] == "20.00"
