"""Process-wide wiring of the ordering core, shared by the views."""

from functools import lru_cache

from aws_lib.dynamodb_client import DynamoDBClient

from .alerts import OperatorAlerts
from .checkout import CheckoutCoordinator
from .orders import OrderStore
from .stock import StockLedger


@lru_cache(maxsize=None)
def get_alerts():
    return OperatorAlerts()


@lru_cache(maxsize=None)
def get_ledger():
    return StockLedger(DynamoDBClient(), alerts=get_alerts())


@lru_cache(maxsize=None)
def get_order_store():
    return OrderStore(DynamoDBClient())


@lru_cache(maxsize=None)
def get_coordinator():
    return CheckoutCoordinator(get_ledger(), get_order_store(), alerts=get_alerts())


def reset():
    """Drop the cached instances (tests, settings changes)."""
    for factory in (get_alerts, get_ledger, get_order_store, get_coordinator):
        factory.cache_clear()
