"""Operator notifications over SNS."""

import json
import logging

from botocore.exceptions import BotoCoreError, ClientError

from aws_config import get_sns_topic_arn
from aws_lib.sns_client import SNSClient

log = logging.getLogger(__name__)


class OperatorAlerts:
    """
    Publishes to the operator topic. The topic ARN is resolved on first use
    (and the topic created if missing), like the kitchen's low-stock alerts.
    """

    def __init__(self, sns=None, topic_arn=None):
        self.sns = sns or SNSClient()
        self._topic_arn = topic_arn

    @property
    def topic_arn(self):
        if not self._topic_arn:
            self._topic_arn = get_sns_topic_arn()
        return self._topic_arn

    def _publish(self, subject, payload):
        try:
            self.sns.publish(self.topic_arn, json.dumps(payload, default=str), subject=subject)
            return True
        except (BotoCoreError, ClientError):
            log.exception("Could not publish operator alert %r: %s", subject, payload)
            return False

    def compensation_failed(self, order_id, unreleased, cause=None):
        """Stock was reserved for an order that never got stored."""
        return self._publish(
            f"Inventory drift: order {order_id}",
            {
                "event": "compensation_failed",
                "order_id": order_id,
                "unreleased": unreleased,
                "cause": repr(cause) if cause else None,
            },
        )

    def low_stock(self, item_id, remaining):
        return self._publish(
            "Low Stock Alert",
            {"event": "low_stock", "item_id": item_id, "remaining": remaining},
        )
