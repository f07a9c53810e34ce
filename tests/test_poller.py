import threading
import time

import pytest

from canteen.errors import StoreUnavailable
from canteen.models import Order, OrderStatus, PaymentMethod, to_money
from canteen.poller import StatusPoller


def order(order_id, status, queue_position):
    return Order(
        order_id=order_id,
        bill_id="B" + order_id,
        customer_ref="21BCE1234",
        lines=(),
        total_amount=to_money(0),
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
        status=OrderStatus(status),
        queue_position=queue_position,
    )


class ScriptedStore:
    """Answers query_by_customer from a list of results/exceptions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = 0
        self.ticked = threading.Event()

    def query_by_customer(self, customer_ref):
        self.calls += 1
        self.ticked.set()
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer


def test_poll_once_projects_and_notifies():
    seen = []
    store = ScriptedStore([order("C", "completed", 2000), order("P", "pending", 1000)])
    poller = StatusPoller(store, "21BCE1234", on_update=seen.append)

    result = poller.poll_once()

    assert [o.order_id for o in result] == ["P", "C"]
    assert seen == [result]
    assert poller.latest == result


def test_failed_poll_keeps_last_good_result():
    first = [order("P", "pending", 1000)]
    later = [order("P", "completed", 1000)]
    store = ScriptedStore(first, StoreUnavailable("offline"), later)
    poller = StatusPoller(store, "21BCE1234")

    good = poller.poll_once()
    assert poller.poll_once() == good
    assert poller.failures == 1
    assert poller.poll_once()[0].status is OrderStatus.COMPLETED


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        StatusPoller(ScriptedStore([]), "21BCE1234", interval=0)


def test_start_polls_until_stopped():
    store = ScriptedStore([order("P", "pending", 1000)])
    poller = StatusPoller(store, "21BCE1234", interval=0.01)

    poller.start()
    assert store.ticked.wait(2)
    assert poller.running
    poller.stop(timeout=2)

    assert not poller.running
    calls = store.calls
    assert calls >= 1
    # no more pulls once stopped
    store.ticked.clear()
    assert not store.ticked.wait(0.05)
    assert store.calls == calls


def test_context_manager_stops_thread():
    store = ScriptedStore([])
    with StatusPoller(store, "21BCE1234", interval=0.01) as poller:
        assert store.ticked.wait(2)
    assert not poller.running


def test_start_twice_keeps_one_thread():
    store = ScriptedStore([])
    poller = StatusPoller(store, "21BCE1234", interval=10)
    try:
        poller.start()
        thread = poller._thread
        poller.start()
        assert poller._thread is thread
    finally:
        poller.stop(timeout=2)


def test_unexpected_error_does_not_stop_polling():
    store = ScriptedStore(KeyError("bill_id"), KeyError("bill_id"), [order("P", "pending", 1000)])
    seen = []
    poller = StatusPoller(store, "21BCE1234", on_update=seen.append, interval=0.01)

    with poller:
        for _ in range(200):
            if seen:
                break
            time.sleep(0.01)
        assert poller.running

    assert store.calls >= 3
    assert poller.failures == 2
    assert [o.order_id for o in seen[0]] == ["P"]


def test_failing_callback_does_not_stop_polling():
    store = ScriptedStore([order("P", "pending", 1000)])
    calls = []

    def explode(orders):
        calls.append(orders)
        raise RuntimeError("screen gone")

    with StatusPoller(store, "21BCE1234", on_update=explode, interval=0.01) as poller:
        for _ in range(200):
            if len(calls) >= 2:
                break
            time.sleep(0.01)
        assert poller.running

    assert len(calls) >= 2
    assert poller.failures >= 2
