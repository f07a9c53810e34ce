# aws_config.py
import os

import boto3
from botocore.config import Config

# -----------------------------
# AWS region & boto3 config
# -----------------------------
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

# Points boto3 at DynamoDB Local when set
DYNAMODB_ENDPOINT_URL = os.getenv("DYNAMODB_ENDPOINT_URL") or None

boto3_config = Config(
    region_name=AWS_REGION,
    retries={"max_attempts": 3, "mode": "standard"}
)

# -----------------------------
# DynamoDB tables
# -----------------------------
ORDERS_TABLE = os.getenv("DDB_ORDERS_TABLE", "Orders")
INVENTORY_TABLE = os.getenv("DDB_INVENTORY_TABLE", "Inventory")
CUSTOMER_INDEX = "customer_ref-index"

# -----------------------------
# Ordering core tuning
# -----------------------------
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))
RESERVE_MAX_ATTEMPTS = int(os.getenv("RESERVE_MAX_ATTEMPTS", "4"))
STATUS_POLL_INTERVAL = float(os.getenv("STATUS_POLL_INTERVAL", "5"))

# UPI payee shown in the payment link; the link is recorded, never charged
UPI_PAYEE = os.getenv("UPI_PAYEE", "pinelabs.10032184@hdfcbank")
UPI_CURRENCY = "INR"

# -----------------------------
# AWS clients/resources
# -----------------------------
def dynamodb_resource():
    return boto3.resource(
        "dynamodb", region_name=AWS_REGION, config=boto3_config,
        endpoint_url=DYNAMODB_ENDPOINT_URL
    )

def sns_client():
    return boto3.client("sns", region_name=AWS_REGION, config=boto3_config)

# -----------------------------
# SNS configuration
# -----------------------------
SNS_OPERATOR_TOPIC_NAME = os.getenv("SNS_OPERATOR_TOPIC_NAME", "canteen-operator-alerts")

def get_sns_topic_arn(topic_name=SNS_OPERATOR_TOPIC_NAME):
    sns = sns_client()
    # Check if topic exists
    next_token = None
    while True:
        if next_token:
            resp = sns.list_topics(NextToken=next_token)
        else:
            resp = sns.list_topics()
        for t in resp.get("Topics", []):
            if t["TopicArn"].endswith(":" + topic_name):
                return t["TopicArn"]
        next_token = resp.get("NextToken")
        if not next_token:
            break
    # Topic does not exist → create it
    resp = sns.create_topic(Name=topic_name)
    return resp["TopicArn"]
