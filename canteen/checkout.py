"""
Checkout: the one place where stock and orders are kept consistent.

Flow for a single checkout:

1. validate the cart and the roll number,
2. return the stored order if this order id was already placed (retry),
3. reserve stock for every catalogue item in the cart in one batch,
4. build the order and write it,
5. if the write fails, give the reserved stock back; if that fails too,
   tell an operator.

Stock is always reserved before the order is written, and an order is only
written for stock that was reserved.
"""

import logging
import random
import time
from collections import OrderedDict
from datetime import datetime

from aws_config import UPI_CURRENCY, UPI_PAYEE

from . import identifiers
from .errors import (
    CompensationFailed,
    DuplicateOrder,
    InvalidCart,
    MissingCustomerRef,
    OutOfStock,
    StoreUnavailable,
    UnknownItem,
)
from .models import (
    OrderDraft,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    Rejected,
    StockRequest,
    to_money,
)

log = logging.getLogger(__name__)


def upi_payment_link(amount, payee=UPI_PAYEE, currency=UPI_CURRENCY):
    return f"upi://pay?pa={payee}&am={to_money(amount)}&cu={currency}"


class CheckoutCoordinator:

    def __init__(self, ledger, store, alerts=None, clock=time.time, rng=random,
                 upi_payee=UPI_PAYEE):
        self.ledger = ledger
        self.store = store
        self.alerts = alerts
        self._clock = clock
        self._rng = rng
        self.upi_payee = upi_payee

    def checkout(self, cart, customer_ref, payment_method, order_id=None):
        """
        Place an order for ``cart`` (a sequence of CartLine).

        ``order_id`` is optional; pass the id from a previous attempt that
        ended in StoreUnavailable to retry it without creating a second
        order. Raises InvalidCart, MissingCustomerRef, OutOfStock,
        Contention, StoreUnavailable, DuplicateOrder or CompensationFailed.
        """
        cart = list(cart or [])
        self._validate_cart(cart)
        customer_ref = (customer_ref or "").strip()
        if not customer_ref:
            raise MissingCustomerRef()
        payment_method = PaymentMethod.parse(payment_method)

        if order_id:
            existing = self.store.find(order_id)
            if existing is not None:
                if existing.customer_ref != customer_ref:
                    raise DuplicateOrder(order_id)
                log.info("[Order: %s] retry of a placed order, not reserving again", order_id)
                return existing

        order_id = order_id or identifiers.new_order_id(rng=self._rng)
        log_prefix = f"[Order: {order_id}]"

        # the ledger is keyed by catalogue item, not by cart line
        result = self.ledger.reserve_all(self._stock_requests(cart))
        if isinstance(result, Rejected):
            log.info("%s out of stock: %s", log_prefix,
                     [s.to_dict() for s in result.shortages])
            raise OutOfStock(result.shortages)
        log.info("%s stock reserved: %s", log_prefix,
                 {r.item_id: r.quantity for r in result.requests})

        draft = self._build_draft(order_id, cart, customer_ref, payment_method)
        try:
            order = self.store.create(draft)
        except (StoreUnavailable, DuplicateOrder) as e:
            return self._recover(draft, result, e)

        log.info("%s placed, total %s, queue position %d", log_prefix,
                 order.total_amount, order.queue_position)
        return order

    # ------------------------------------------------------------------
    @staticmethod
    def _validate_cart(cart):
        if not cart:
            raise InvalidCart("Cart is empty")
        for line in cart:
            qty = line.requested_quantity
            if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
                raise InvalidCart(
                    f"Quantity for {line.name or line.item_id} must be a positive whole number"
                )
            if not line.item_id:
                raise InvalidCart("Cart line without an item id")

    @staticmethod
    def _stock_requests(cart):
        totals = OrderedDict()
        for line in cart:
            totals[line.item_id] = totals.get(line.item_id, 0) + line.requested_quantity
        return [StockRequest(item_id, qty) for item_id, qty in totals.items()]

    def _build_draft(self, order_id, cart, customer_ref, payment_method):
        millis = int(self._clock() * 1000)
        placed_at = datetime.fromtimestamp(millis / 1000)
        lines = tuple(
            OrderLine(
                item_id=line.item_id,
                name=line.name,
                unit_price=to_money(line.unit_price),
                quantity=line.requested_quantity,
            )
            for line in cart
        )
        total = to_money(sum((line.line_total for line in lines), to_money(0)))

        cash = payment_method is PaymentMethod.CASH_ON_DELIVERY
        return OrderDraft(
            order_id=order_id,
            bill_id=identifiers.new_bill_id(rng=self._rng),
            customer_ref=customer_ref,
            lines=lines,
            total_amount=total,
            payment_method=payment_method,
            status=OrderStatus.initial_for(payment_method),
            queue_position=millis,
            transaction_id=None if cash else identifiers.new_transaction_id(millis, rng=self._rng),
            display_date=placed_at.strftime("%d/%m/%Y"),
            display_time=placed_at.strftime("%I:%M %p"),
            payment_link=None if cash else upi_payment_link(total, payee=self.upi_payee),
        )

    def _recover(self, draft, reserved, error):
        log_prefix = f"[Order: {draft.order_id}]"

        if isinstance(error, StoreUnavailable):
            # the write may have landed before the connection dropped
            try:
                stored = self.store.find(draft.order_id)
            except StoreUnavailable as lookup_error:
                # outcome unknown: keep the stock held rather than risk a double release
                log.error("%s could not confirm whether the order was stored: %s",
                          log_prefix, lookup_error)
                held = {req.item_id: req.quantity for req in reserved.requests}
                self._escalate(draft.order_id, held, error)
            if stored is not None and stored.customer_ref == draft.customer_ref:
                log.info("%s write reported failure but the order is stored", log_prefix)
                return stored

        log.error("%s order not saved (%s), releasing reserved stock", log_prefix, error)
        unreleased = {}
        for req in reserved.requests:
            try:
                self.ledger.release(req.item_id, req.quantity)
            except (StoreUnavailable, UnknownItem) as release_error:
                log.error("%s release of %d x %s failed: %s", log_prefix,
                          req.quantity, req.item_id, release_error)
                unreleased[req.item_id] = req.quantity

        if unreleased:
            self._escalate(draft.order_id, unreleased, error)

        log.info("%s reserved stock released", log_prefix)
        if isinstance(error, StoreUnavailable) and not error.order_id:
            error.order_id = draft.order_id
        raise error

    def _escalate(self, order_id, unreleased, error):
        log.critical("[Order: %s] COMPENSATION FAILED, stock still held: %s. Needs manual action!",
                     order_id, unreleased)
        if self.alerts is not None:
            self.alerts.compensation_failed(order_id, unreleased, cause=error)
        raise CompensationFailed(order_id, unreleased, cause=error) from error
