# infra_setup.py
from botocore.exceptions import ClientError

from aws_config import (
    CUSTOMER_INDEX,
    INVENTORY_TABLE,
    ORDERS_TABLE,
    SNS_OPERATOR_TOPIC_NAME,
    dynamodb_resource,
    get_sns_topic_arn,
)


# --- DynamoDB Tables ---
def create_table(ddb, table_name, partition_key, indexes=None):
    """Create a DynamoDB table if it doesn't exist."""
    try:
        table = ddb.Table(table_name)
        table.load()
        print(f"Table '{table_name}' already exists.")
        return table
    except ClientError as e:
        if e.response["Error"]["Code"] != "ResourceNotFoundException":
            raise

    attributes = {partition_key}
    kwargs = {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": partition_key, "KeyType": "HASH"}],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        kwargs["GlobalSecondaryIndexes"] = [
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for index_name, key in indexes.items()
        ]
        attributes.update(indexes.values())
    kwargs["AttributeDefinitions"] = [
        {"AttributeName": name, "AttributeType": "S"} for name in sorted(attributes)
    ]

    table = ddb.create_table(**kwargs)
    table.wait_until_exists()
    print(f"Created table '{table_name}' successfully.")
    return table


def create_orders_table(ddb):
    # customer_ref index backs the "Your Orders" lookup by roll number
    return create_table(ddb, ORDERS_TABLE, "order_id", indexes={CUSTOMER_INDEX: "customer_ref"})


def create_inventory_table(ddb):
    return create_table(ddb, INVENTORY_TABLE, "item_id")


# --- Main setup ---
def setup(ddb=None):
    ddb = ddb or dynamodb_resource()
    create_orders_table(ddb)
    create_inventory_table(ddb)
    return get_sns_topic_arn(SNS_OPERATOR_TOPIC_NAME)


if __name__ == "__main__":
    TOPIC_ARN = setup()

    print("\nInfrastructure setup completed successfully.")
    print(f"Orders table: {ORDERS_TABLE} (index {CUSTOMER_INDEX})")
    print(f"Inventory table: {INVENTORY_TABLE}")
    print(f"Operator SNS Topic ARN: {TOPIC_ARN}")
