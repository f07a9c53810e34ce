from .base_client import AWSBaseClient
from decimal import Decimal

from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer

from aws_config import DYNAMODB_ENDPOINT_URL


class DynamoDBClient(AWSBaseClient):
    def __init__(self, endpoint_url=DYNAMODB_ENDPOINT_URL):
        super().__init__("dynamodb", endpoint_url=endpoint_url)
        self._serializer = TypeSerializer()

    def _deserialize(self, value):
        """Convert DynamoDB data into plain Python types."""
        if isinstance(value, dict):
            return {k: self._deserialize(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._deserialize(v) for v in value]
        if isinstance(value, Decimal):
            return int(value) if value % 1 == 0 else float(value)
        return value

# CRUD

    def put(self, table, item, condition=None):
        """
        Write a whole item. ``condition`` is an optional ConditionExpression
        string (e.g. ``attribute_not_exists(order_id)``); a failed condition
        surfaces as botocore's ConditionalCheckFailedException.
        """
        tbl = self.resource.Table(table)
        clean_item = self._convert_to_decimal(item)
        kwargs = {"Item": clean_item}
        if condition:
            kwargs["ConditionExpression"] = condition
        return tbl.put_item(**kwargs)

    def get(self, table, key, consistent=False):
        tbl = self.resource.Table(table)
        resp = tbl.get_item(Key=key, ConsistentRead=consistent)
        item = resp.get("Item")
        return self._deserialize(item) if item else {}

    def scan(self, table):
        tbl = self.resource.Table(table)
        resp = tbl.scan()
        items = resp.get("Items", [])
        # follow pagination until the table is exhausted
        while "LastEvaluatedKey" in resp:
            resp = tbl.scan(ExclusiveStartKey=resp["LastEvaluatedKey"])
            items.extend(resp.get("Items", []))
        return [self._deserialize(i) for i in items]

    def query_eq(self, table, index, attribute, value):
        """Return every item of ``index`` whose ``attribute`` equals ``value``."""
        tbl = self.resource.Table(table)
        kwargs = {
            "IndexName": index,
            "KeyConditionExpression": Key(attribute).eq(value),
        }
        resp = tbl.query(**kwargs)
        items = resp.get("Items", [])
        while "LastEvaluatedKey" in resp:
            resp = tbl.query(ExclusiveStartKey=resp["LastEvaluatedKey"], **kwargs)
            items.extend(resp.get("Items", []))
        return [self._deserialize(i) for i in items]

    def update(self, table, key, expression, values, condition=None, names=None):
        """Apply an UpdateExpression and return the item's new attributes."""
        tbl = self.resource.Table(table)
        kwargs = {
            "Key": key,
            "UpdateExpression": expression,
            "ExpressionAttributeValues": self._convert_to_decimal(values),
            "ReturnValues": "ALL_NEW",
        }
        if condition:
            kwargs["ConditionExpression"] = condition
        if names:
            kwargs["ExpressionAttributeNames"] = names
        resp = tbl.update_item(**kwargs)
        return self._deserialize(resp.get("Attributes", {}))

# transactions

    def transact_update(self, table, updates):
        """
        Apply several conditional updates to ``table`` in one
        TransactWriteItems call. Each entry is a dict with ``key``,
        ``expression``, ``values`` and optionally ``condition``.
        Either every update is applied or none is; a failed condition or a
        concurrent writer cancels the whole transaction with
        TransactionCanceledException.
        """
        actions = []
        for upd in updates:
            action = {
                "TableName": table,
                "Key": self._serialize(upd["key"]),
                "UpdateExpression": upd["expression"],
                "ExpressionAttributeValues": self._serialize(upd["values"]),
            }
            if upd.get("condition"):
                action["ConditionExpression"] = upd["condition"]
            actions.append({"Update": action})
        return self.client.transact_write_items(TransactItems=actions)

    def _serialize(self, data):
        """Turn a plain dict into DynamoDB's typed wire format."""
        clean = self._convert_to_decimal(data)
        return {k: self._serializer.serialize(v) for k, v in clean.items()}

# int to decimal
    def _convert_to_decimal(self, data):
        """Recursively convert numbers to Decimal for DynamoDB writes."""
        if isinstance(data, dict):
            return {k: self._convert_to_decimal(v) for k, v in data.items()}
        if isinstance(data, list):
            return [self._convert_to_decimal(v) for v in data]
        if isinstance(data, bool):
            return data
        if isinstance(data, int):
            return Decimal(data)
        if isinstance(data, float):
            return Decimal(str(data))
        return data

    def delete(self, table, key):
        """
        Delete an item from the DynamoDB table.
        """
        tbl = self.resource.Table(table)
        return tbl.delete_item(Key=key)
