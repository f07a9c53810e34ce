import pytest

from canteen.errors import DuplicateOrder, InvalidStatusTransition, OrderNotFound, StoreUnavailable
from canteen.models import OrderDraft, OrderLine, OrderStatus, PaymentMethod, to_money
from canteen.orders import OrderStore


def make_draft(order_id="ORD001", customer_ref="21BCE1234", status=OrderStatus.PENDING,
               queue_position=1000, method=PaymentMethod.CASH_ON_DELIVERY, tx=None):
    return OrderDraft(
        order_id=order_id,
        bill_id="BIL001",
        customer_ref=customer_ref,
        lines=(OrderLine("poori", "poori", to_money(18), 2),),
        total_amount=to_money(36),
        payment_method=method,
        status=status,
        queue_position=queue_position,
        transaction_id=tx,
    )


class BrokenClient:
    def __getattr__(self, name):
        from botocore.exceptions import EndpointConnectionError

        def fail(*args, **kwargs):
            raise EndpointConnectionError(endpoint_url="http://dynamodb.local")
        return fail


def test_create_assigns_document_key_and_timestamp(ddb):
    store = OrderStore(ddb, clock=lambda: "2026-10-19T08:00:00+00:00")

    order = store.create(make_draft())

    assert order.doc_id
    assert order.created_at == "2026-10-19T08:00:00+00:00"
    assert store.get_by_id("ORD001") == order


def test_refetch_is_unchanged_by_unrelated_writes(store, stock, ledger):
    created = store.create(make_draft(method=PaymentMethod.QR_CODE, status=OrderStatus.PAID,
                                      tx="LOYW3V28ABCDEF"))
    store.create(make_draft(order_id="ORD002"))
    stock(poori=3)

    again = store.get_by_id("ORD001")

    assert again.lines == created.lines
    assert again.total_amount == created.total_amount
    assert again.transaction_id == "LOYW3V28ABCDEF"


def test_get_by_id_not_found(store):
    with pytest.raises(OrderNotFound):
        store.get_by_id("NOPE00")
    assert store.find("NOPE00") is None


def test_query_by_customer_is_exact_and_case_sensitive(store):
    store.create(make_draft("ORD001", "21BCE1234"))
    store.create(make_draft("ORD002", "21BCE1234"))
    store.create(make_draft("ORD003", "21bce1234"))
    store.create(make_draft("ORD004", "21BCE12345"))

    found = store.query_by_customer("21BCE1234")

    assert sorted(o.order_id for o in found) == ["ORD001", "ORD002"]
    assert store.query_by_customer("nobody") == []


def test_create_same_id_same_customer_returns_existing(store):
    first = store.create(make_draft())

    second = store.create(make_draft())

    assert second == first
    assert len(store.query_by_customer("21BCE1234")) == 1


def test_create_same_id_other_customer_is_rejected(store):
    store.create(make_draft())
    with pytest.raises(DuplicateOrder):
        store.create(make_draft(customer_ref="22MEC0001"))


def test_store_outage_is_reported(aws):
    store = OrderStore(BrokenClient())
    with pytest.raises(StoreUnavailable) as excinfo:
        store.create(make_draft())
    assert excinfo.value.order_id == "ORD001"
    with pytest.raises(StoreUnavailable):
        store.query_by_customer("21BCE1234")


def test_advance_status_follows_state_machine(store):
    store.create(make_draft())

    paid = store.advance_status("ORD001", "paid")
    done = store.advance_status("ORD001", OrderStatus.COMPLETED)

    assert paid.status is OrderStatus.PAID
    assert done.status is OrderStatus.COMPLETED
    assert store.get_by_id("ORD001").lines == done.lines


def test_completed_is_terminal(store):
    store.create(make_draft(status=OrderStatus.COMPLETED))
    with pytest.raises(InvalidStatusTransition):
        store.advance_status("ORD001", "paid")


def test_paid_cannot_go_back_to_pending(store):
    store.create(make_draft(status=OrderStatus.PAID))
    with pytest.raises(InvalidStatusTransition):
        store.advance_status("ORD001", "pending")


def test_list_all(store):
    store.create(make_draft("ORD001"))
    store.create(make_draft("ORD002", "someone-else"))
    assert sorted(o.order_id for o in store.list_all()) == ["ORD001", "ORD002"]
