import json

import boto3

import reset
from aws_config import dynamodb_resource, get_sns_topic_arn
from canteen.alerts import OperatorAlerts
from infra_setup import create_orders_table, setup


def test_setup_is_repeatable(aws):
    arn = setup()
    assert setup() == arn
    assert arn.endswith(":canteen-operator-alerts")

    names = boto3.client("dynamodb", region_name="us-east-1").list_tables()["TableNames"]
    assert {"Orders", "Inventory"} <= set(names)


def test_orders_table_has_customer_index(aws):
    table = create_orders_table(dynamodb_resource())
    table.reload()
    assert [i["IndexName"] for i in table.global_secondary_indexes] == ["customer_ref-index"]


def test_reset_clears_orders_and_seeds_menu(tables, ledger, store):
    from canteen.models import MenuItem
    ledger.put_item(MenuItem("old", "old", "snacks", 1, 1))

    seeded = reset.reset(ddb=tables, ledger=ledger)

    assert seeded == sum(len(rows) for rows in reset.MENU.values())
    assert ledger.get_item("old") is None
    menu = ledger.menu()
    assert set(menu) == {"morning_food", "lunch", "snacks", "chocolate", "drink"}
    assert ledger.get_item("poori").available_quantity == 7
    assert ledger.get_item("badam-milk").price == 30


def test_operator_alerts_publish_to_topic(aws):
    sqs = boto3.client("sqs", region_name="us-east-1")
    queue_url = sqs.create_queue(QueueName="ops")["QueueUrl"]
    queue_arn = sqs.get_queue_attributes(
        QueueUrl=queue_url, AttributeNames=["QueueArn"])["Attributes"]["QueueArn"]
    topic_arn = get_sns_topic_arn()
    boto3.client("sns", region_name="us-east-1").subscribe(
        TopicArn=topic_arn, Protocol="sqs", Endpoint=queue_arn)

    assert OperatorAlerts().compensation_failed("ABC123", {"poori": 2}, cause=None)

    messages = sqs.receive_message(QueueUrl=queue_url, MaxNumberOfMessages=10)["Messages"]
    envelope = json.loads(messages[0]["Body"])
    payload = json.loads(envelope["Message"])
    assert payload == {"event": "compensation_failed", "order_id": "ABC123",
                       "unreleased": {"poori": 2}, "cause": None}
