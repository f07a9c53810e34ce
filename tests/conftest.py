# conftest.py
import os

# fake credentials and a fixed region before anything builds a boto3 session
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_REGION"] = "us-east-1"
os.environ.pop("DYNAMODB_ENDPOINT_URL", None)
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "canteen_site.settings")

import django
import pytest
from moto import mock_aws

django.setup()

from aws_config import dynamodb_resource
from aws_lib.dynamodb_client import DynamoDBClient
from canteen import services
from canteen.models import MenuItem
from canteen.orders import OrderStore
from canteen.stock import StockLedger
from infra_setup import create_inventory_table, create_orders_table


class RecordingAlerts:
    """Stands in for OperatorAlerts and remembers what would have been sent."""

    def __init__(self):
        self.compensations = []
        self.low = []

    def compensation_failed(self, order_id, unreleased, cause=None):
        self.compensations.append((order_id, dict(unreleased), cause))
        return True

    def low_stock(self, item_id, remaining):
        self.low.append((item_id, remaining))
        return True


@pytest.fixture
def aws():
    with mock_aws():
        yield


@pytest.fixture
def tables(aws):
    resource = dynamodb_resource()
    create_orders_table(resource)
    create_inventory_table(resource)
    return resource


@pytest.fixture
def ddb(tables):
    return DynamoDBClient()


@pytest.fixture
def alerts():
    return RecordingAlerts()


@pytest.fixture
def ledger(ddb, alerts):
    return StockLedger(ddb, alerts=alerts, sleep=lambda seconds: None)


@pytest.fixture
def store(ddb):
    return OrderStore(ddb)


@pytest.fixture
def stock(ledger):
    """stock(poori=7, dosai=9) seeds menu rows with those quantities."""
    def _stock(**levels):
        for item_id, qty in levels.items():
            ledger.put_item(MenuItem(item_id=item_id, name=item_id.replace("_", " "),
                                     category="snacks", price=10, available_quantity=qty))
    return _stock


@pytest.fixture
def available(ledger):
    def _available(item_id):
        item = ledger.get_item(item_id)
        return item.available_quantity if item else None
    return _available


@pytest.fixture(autouse=True)
def fresh_services():
    services.reset()
    yield
    services.reset()
