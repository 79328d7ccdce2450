"""Amazon SQS work queue."""

import asyncio
import json
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ConfigurationError, QueueError, SubmissionError
from ..logging_config import get_logger
from .work_queue import ReceivedMessage

logger = get_logger(__name__)

DEPTH_ATTRIBUTES = [
    "ApproximateNumberOfMessages",
    "ApproximateNumberOfMessagesNotVisible",
]


def _error_code(error: Exception) -> str | None:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


class SqsWorkQueue:
    """Work queue backed by an SQS queue URL.

    Visibility timeout and redelivery are the queue's own settings. boto3 is
    blocking, so every call runs in a worker thread.
    """

    def __init__(
        self,
        queue_url: str | None,
        region: str = "us-east-1",
        client: Any = None,
    ):
        self._queue_url = queue_url
        self._region = region
        self._client = client

    async def init(self) -> None:
        pass

    async def close(self) -> None:
        pass

    def _require_url(self) -> str:
        if not self._queue_url:
            raise ConfigurationError("SQS_QUEUE_URL not configured")
        return self._queue_url

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("sqs", region_name=self._region)
        return self._client

    async def enqueue(self, payload: dict) -> str:
        """Send a JSON payload. Returns the SQS message id."""
        queue_url = self._require_url()
        client = self._get_client()

        try:
            response = await asyncio.to_thread(
                client.send_message,
                QueueUrl=queue_url,
                MessageBody=json.dumps(payload),
            )
        except (ClientError, BotoCoreError) as e:
            raise SubmissionError(f"SQS send failed: {e}") from e

        logger.debug("Sent %s to %s", response["MessageId"], queue_url)
        return response["MessageId"]

    async def receive(self) -> ReceivedMessage | None:
        """Short-poll for one message."""
        queue_url = self._require_url()
        client = self._get_client()

        try:
            response = await asyncio.to_thread(
                client.receive_message,
                QueueUrl=queue_url,
                MaxNumberOfMessages=1,
                WaitTimeSeconds=0,
                AttributeNames=["ApproximateReceiveCount"],
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueError(f"SQS receive failed: {e}") from e

        messages = response.get("Messages") or []
        if not messages:
            return None

        message = messages[0]
        attributes = message.get("Attributes") or {}
        return ReceivedMessage(
            message_id=message["MessageId"],
            body=message.get("Body", ""),
            receipt_handle=message["ReceiptHandle"],
            receive_count=int(attributes.get("ApproximateReceiveCount", 1)),
        )

    async def acknowledge(self, receipt_handle: str) -> bool:
        """Delete a received message. False when the handle is no longer valid."""
        queue_url = self._require_url()
        client = self._get_client()

        try:
            await asyncio.to_thread(
                client.delete_message,
                QueueUrl=queue_url,
                ReceiptHandle=receipt_handle,
            )
        except (ClientError, BotoCoreError) as e:
            if _error_code(e) == "ReceiptHandleIsInvalid":
                logger.warning("Acknowledge with stale receipt handle %s", receipt_handle)
                return False
            raise QueueError(f"SQS delete failed: {e}") from e
        return True

    async def count(self) -> int:
        """Approximate depth, visible plus in flight."""
        queue_url = self._require_url()
        client = self._get_client()

        try:
            response = await asyncio.to_thread(
                client.get_queue_attributes,
                QueueUrl=queue_url,
                AttributeNames=DEPTH_ATTRIBUTES,
            )
        except (ClientError, BotoCoreError) as e:
            raise QueueError(f"SQS attributes failed: {e}") from e

        attributes = response.get("Attributes") or {}
        return sum(int(attributes.get(name, 0)) for name in DEPTH_ATTRIBUTES)

    async def clear(self) -> None:
        queue_url = self._require_url()
        client = self._get_client()

        try:
            await asyncio.to_thread(client.purge_queue, QueueUrl=queue_url)
        except (ClientError, BotoCoreError) as e:
            raise QueueError(f"SQS purge failed: {e}") from e
