"""Order documents in the Orders table."""

import logging
import uuid
from datetime import datetime, timezone

from botocore.exceptions import BotoCoreError, ClientError

from aws_config import CUSTOMER_INDEX, ORDERS_TABLE
from aws_lib.dynamodb_client import DynamoDBClient

from .errors import DuplicateOrder, InvalidStatusTransition, OrderNotFound, StoreUnavailable
from .models import Order, OrderStatus

log = logging.getLogger(__name__)


def _utc_now():
    return datetime.now(timezone.utc).isoformat()


def _error_code(err):
    return err.response.get("Error", {}).get("Code")


class OrderStore:
    """
    Orders are written once by checkout. After that only ``status`` moves,
    through ``advance_status``; lines, totals and transaction ids are never
    rewritten and nothing here deletes an order.
    """

    def __init__(self, ddb=None, table=ORDERS_TABLE, index=CUSTOMER_INDEX, clock=_utc_now):
        self.ddb = ddb or DynamoDBClient()
        self.table = table
        self.index = index
        self._clock = clock

    def create(self, draft):
        """
        Persist ``draft`` and return the stored Order.

        ``order_id`` doubles as the idempotency key: the write is conditional
        on the id being unused. When it is already taken by the same
        customer's order (a retried request whose first write went through)
        that stored order is returned instead of writing a second one.
        """
        order = Order.from_draft(draft, doc_id=uuid.uuid4().hex, created_at=self._clock())
        try:
            self.ddb.put(self.table, order.to_item(), condition="attribute_not_exists(order_id)")
        except ClientError as e:
            if _error_code(e) != "ConditionalCheckFailedException":
                raise StoreUnavailable(f"[Order: {draft.order_id}] could not be saved", cause=e,
                                   order_id=draft.order_id) from e
            existing = self.get_by_id(draft.order_id)
            if existing.customer_ref != draft.customer_ref:
                raise DuplicateOrder(draft.order_id) from e
            log.info("[Order: %s] already stored, returning existing record", draft.order_id)
            return existing
        except BotoCoreError as e:
            raise StoreUnavailable(f"[Order: {draft.order_id}] could not be saved", cause=e,
                                   order_id=draft.order_id) from e

        log.info("[Order: %s] stored for %s (%s, %s)", order.order_id, order.customer_ref,
                 order.payment_method.value, order.status.value)
        return order

    def get_by_id(self, order_id):
        try:
            item = self.ddb.get(self.table, {"order_id": order_id}, consistent=True)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"[Order: {order_id}] could not be read", cause=e) from e
        if not item:
            raise OrderNotFound(order_id)
        return Order.from_item(item)

    def find(self, order_id):
        """Like ``get_by_id`` but None instead of OrderNotFound."""
        try:
            return self.get_by_id(order_id)
        except OrderNotFound:
            return None

    def query_by_customer(self, customer_ref):
        """Every order whose customer_ref matches exactly. Order is unspecified."""
        try:
            items = self.ddb.query_eq(self.table, self.index, "customer_ref", customer_ref)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"Could not load orders for {customer_ref}", cause=e) from e
        return [Order.from_item(i) for i in items]

    def list_all(self):
        try:
            items = self.ddb.scan(self.table)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable("Could not load orders", cause=e) from e
        return [Order.from_item(i) for i in items]

    def advance_status(self, order_id, new_status):
        """
        Move an order along pending -> paid -> completed. The write is
        conditional on the status read just before, so two staff members
        racing on the same order cannot skip the check.
        """
        new_status = OrderStatus(new_status)
        current = self.get_by_id(order_id)
        if not current.status.can_advance_to(new_status):
            raise InvalidStatusTransition(current.status.value, new_status.value)
        try:
            attrs = self.ddb.update(
                self.table,
                {"order_id": order_id},
                "SET #s = :new",
                {":new": new_status.value, ":old": current.status.value},
                condition="#s = :old",
                names={"#s": "status"},
            )
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                latest = self.get_by_id(order_id)
                raise InvalidStatusTransition(latest.status.value, new_status.value) from e
            raise StoreUnavailable(f"[Order: {order_id}] status not updated", cause=e) from e
        except BotoCoreError as e:
            raise StoreUnavailable(f"[Order: {order_id}] status not updated", cause=e) from e
        log.info("[Order: %s] %s -> %s", order_id, current.status.value, new_status.value)
        return Order.from_item(attrs)
