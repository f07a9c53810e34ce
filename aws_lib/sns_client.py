from .base_client import AWSBaseClient

class SNSClient(AWSBaseClient):
    def __init__(self):
        super().__init__("sns")

    def publish(self, topic_arn, message, subject=None):
        kwargs = {"TopicArn": topic_arn, "Message": message}
        if subject:
            # SNS rejects subjects longer than 100 characters
            kwargs["Subject"] = subject[:100]
        return self.client.publish(**kwargs)
