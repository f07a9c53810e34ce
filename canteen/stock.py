"""
Stock ledger over the Inventory table.

``available_quantity`` is only ever changed here. Reservations read every
touched item, then write all decrements in one DynamoDB transaction whose
conditions pin the ``stock_version`` each item had when it was read. If another
checkout wrote any of those items in between, the transaction is cancelled
as a whole and the batch is re-read and retried.
"""

import logging
import random
import time
from collections import OrderedDict

from botocore.exceptions import BotoCoreError, ClientError

from aws_config import INVENTORY_TABLE, LOW_STOCK_THRESHOLD, RESERVE_MAX_ATTEMPTS
from aws_lib.dynamodb_client import DynamoDBClient

from .errors import Contention, StoreUnavailable, UnknownItem
from .models import MenuItem, Rejected, Reserved, Shortage, StockRequest, to_money

log = logging.getLogger(__name__)

# error codes that mean "someone else wrote first", not "the store is down"
CONFLICT_CODES = frozenset({
    "TransactionCanceledException",
    "TransactionConflictException",
    "ConditionalCheckFailedException",
})


class StockLedger:

    def __init__(self, ddb=None, table=INVENTORY_TABLE, alerts=None,
                 max_attempts=RESERVE_MAX_ATTEMPTS, backoff_base=0.05,
                 low_stock_threshold=LOW_STOCK_THRESHOLD, sleep=time.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.ddb = ddb or DynamoDBClient()
        self.table = table
        self.alerts = alerts
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.low_stock_threshold = low_stock_threshold
        self._sleep = sleep

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_item(self, item_id):
        """Current row for ``item_id`` or None when it is not on the menu."""
        try:
            item = self.ddb.get(self.table, {"item_id": item_id}, consistent=True)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"Could not read stock for {item_id}", cause=e) from e
        return MenuItem.from_item(item) if item else None

    def list_items(self):
        try:
            rows = self.ddb.scan(self.table)
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable("Could not read the menu", cause=e) from e
        items = [MenuItem.from_item(r) for r in rows]
        return sorted(items, key=lambda i: (i.category, i.name))

    def menu(self):
        """Menu grouped by category, the way the home screen lists it."""
        grouped = OrderedDict()
        for item in self.list_items():
            grouped.setdefault(item.category, []).append(item)
        return grouped

    def put_item(self, menu_item):
        """
        Seed or overwrite a menu row. Setup and reset only: this replaces
        ``available_quantity`` outright, so it must not run next to live
        checkouts. Use ``restock`` there.
        """
        if menu_item.available_quantity < 0:
            raise ValueError("available_quantity cannot be negative")
        try:
            self.ddb.put(self.table, menu_item.to_item())
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"Could not write {menu_item.item_id}", cause=e) from e
        return menu_item

    def restock(self, menu_item):
        """
        Add ``menu_item.available_quantity`` units to the row, creating it
        when missing, and refresh its name, category and price.

        Runs as one UpdateItem with ADD, so reservations committed around
        it are never overwritten. The version bump makes any reservation
        that read the row before this write retry. Returns the stored row.
        """
        if menu_item.available_quantity < 0:
            raise ValueError("restock quantity cannot be negative")
        try:
            attrs = self.ddb.update(
                self.table,
                {"item_id": menu_item.item_id},
                "SET #n = :name, #c = :category, #p = :price, "
                "stock_version = if_not_exists(stock_version, :zero) + :one "
                "ADD available_quantity :qty",
                {
                    ":name": menu_item.name,
                    ":category": menu_item.category,
                    ":price": to_money(menu_item.price),
                    ":qty": int(menu_item.available_quantity),
                    ":zero": 0,
                    ":one": 1,
                },
                names={"#n": "name", "#c": "category", "#p": "price"},
            )
        except (BotoCoreError, ClientError) as e:
            raise StoreUnavailable(f"Could not restock {menu_item.item_id}", cause=e) from e
        item = MenuItem.from_item(attrs)
        log.info("Restocked %d x %s, now %d available",
                 menu_item.available_quantity, item.item_id, item.available_quantity)
        return item

    # ------------------------------------------------------------------
    # reserve / release
    # ------------------------------------------------------------------
    def reserve_all(self, requests):
        """
        Reserve every request or none of them.

        Returns ``Reserved`` when all decrements were committed and
        ``Rejected`` (with one Shortage per short item) when any item lacks
        stock; nothing is written in the rejected case. Raises
        ``Contention`` when concurrent writers kept cancelling the
        transaction for ``max_attempts`` tries, and ``StoreUnavailable`` on
        transport failures.
        """
        wanted = self._merge(requests)
        if not wanted:
            return Reserved(())

        for attempt in range(1, self.max_attempts + 1):
            levels = self._read_levels(wanted)
            shortages = self._shortages(wanted, levels)
            if shortages:
                log.info("Reservation rejected, short on %s",
                         ", ".join(s.item_id for s in shortages))
                return Rejected(tuple(shortages))

            try:
                self.ddb.transact_update(self.table, self._decrements(wanted, levels))
            except ClientError as e:
                code = e.response.get("Error", {}).get("Code")
                if code not in CONFLICT_CODES:
                    raise StoreUnavailable("Stock transaction failed", cause=e) from e
                log.info("Stock conflict on attempt %d/%d for %s",
                         attempt, self.max_attempts, sorted(wanted))
                if attempt < self.max_attempts:
                    self._backoff(attempt)
                continue
            except BotoCoreError as e:
                raise StoreUnavailable("Stock transaction failed", cause=e) from e

            self._check_low_stock(wanted, levels)
            return Reserved(tuple(StockRequest(i, q) for i, q in wanted.items()))

        log.warning("Giving up on reservation after %d attempts: %s",
                    self.max_attempts, sorted(wanted))
        raise Contention(self.max_attempts)

    def release(self, item_id, quantity):
        """
        Give ``quantity`` units of ``item_id`` back. Not idempotent: two
        calls release twice. Returns the new available quantity.
        """
        if quantity <= 0:
            raise ValueError("release quantity must be positive")
        try:
            attrs = self.ddb.update(
                self.table,
                {"item_id": item_id},
                "SET stock_version = if_not_exists(stock_version, :zero) + :one "
                "ADD available_quantity :qty",
                {":qty": quantity, ":zero": 0, ":one": 1},
                condition="attribute_exists(item_id)",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                raise UnknownItem(item_id) from e
            raise StoreUnavailable(f"Could not release {item_id}", cause=e) from e
        except BotoCoreError as e:
            raise StoreUnavailable(f"Could not release {item_id}", cause=e) from e
        log.info("Released %d x %s, now %s available",
                 quantity, item_id, attrs.get("available_quantity"))
        return int(attrs.get("available_quantity", 0))

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _merge(requests):
        wanted = OrderedDict()
        for req in requests:
            if req.quantity < 0:
                raise ValueError(f"negative quantity for {req.item_id}")
            if req.quantity == 0:
                continue
            wanted[req.item_id] = wanted.get(req.item_id, 0) + req.quantity
        return wanted

    def _read_levels(self, wanted):
        return {item_id: self.get_item(item_id) for item_id in wanted}

    @staticmethod
    def _shortages(wanted, levels):
        out = []
        for item_id, qty in wanted.items():
            current = levels.get(item_id)
            available = current.available_quantity if current else 0
            if available < qty:
                out.append(Shortage(item_id=item_id, available=available, requested=qty))
        return out

    @staticmethod
    def _decrements(wanted, levels):
        updates = []
        for item_id, qty in wanted.items():
            seen = levels[item_id].version
            if seen == 0:
                version_check = "(attribute_not_exists(stock_version) OR stock_version = :seen)"
            else:
                version_check = "stock_version = :seen"
            updates.append({
                "key": {"item_id": item_id},
                "expression": "SET available_quantity = available_quantity - :qty, "
                              "stock_version = if_not_exists(stock_version, :zero) + :one",
                "values": {":qty": qty, ":seen": seen, ":zero": 0, ":one": 1},
                "condition": "attribute_exists(item_id) AND available_quantity >= :qty AND "
                             + version_check,
            })
        return updates

    def _backoff(self, attempt):
        delay = self.backoff_base * (2 ** (attempt - 1))
        self._sleep(delay * random.uniform(0.5, 1.5))

    def _check_low_stock(self, wanted, levels):
        if self.alerts is None:
            return
        for item_id, qty in wanted.items():
            remaining = levels[item_id].available_quantity - qty
            if remaining < self.low_stock_threshold:
                self.alerts.low_stock(item_id, remaining)
