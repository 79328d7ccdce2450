"""Restaurant suggestion emails."""

import asyncio
from collections import deque
from html import escape
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ConfigurationError, NotificationError
from ..logging_config import get_logger
from ..models import DiningRequest, Notification, RestaurantDetail

logger = get_logger(__name__)


class INotifier(Protocol):
    """Delivers a composed notification. Raises on failure; never retries."""

    async def send(self, notification: Notification) -> None:
        ...


def compose_notification(
    request: DiningRequest, restaurants: list[RestaurantDetail]
) -> Notification:
    """Build the suggestion email; restaurants keep their given order."""
    cuisine = request.cuisine
    date_text = request.dining_date.isoformat()

    restaurant_lines = "\n".join(
        f"{i}. {r.name}, located at {r.address} "
        f"(Rating: {r.rating}/5, {r.review_count} reviews)"
        for i, r in enumerate(restaurants, start=1)
    )
    text_body = (
        f"Hello! Here are my {cuisine} restaurant suggestions for "
        f"{request.party_size} people, for {date_text} at {request.dining_time}:\n\n"
        f"{restaurant_lines}\n\nEnjoy your meal!"
    )

    items = "".join(
        f"<li><strong>{escape(r.name)}</strong>, located at {escape(r.address)} "
        f"(Rating: {escape(str(r.rating))}/5, {escape(str(r.review_count))} reviews)</li>"
        for r in restaurants
    )
    html_body = (
        "<html><body>"
        "<p>Hello!</p>"
        f"<p>Here are my <strong>{escape(cuisine)}</strong> restaurant suggestions for "
        f"<strong>{request.party_size}</strong> people, for "
        f"<strong>{date_text}</strong> at <strong>{escape(request.dining_time)}</strong>:</p>"
        f"<ol>{items}</ol>"
        "<p>Enjoy your meal!</p>"
        "</body></html>"
    )

    return Notification(
        recipient=request.email,
        subject=f"Your {cuisine} Restaurant Suggestions",
        text_body=text_body,
        html_body=html_body,
    )


class SesNotifier:
    """Amazon SES sender. boto3 is blocking, so calls run in a worker thread."""

    def __init__(
        self,
        sender: str | None,
        region: str = "us-east-1",
        client: Any = None,
    ):
        self._sender = sender
        self._region = region
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("ses", region_name=self._region)
        return self._client

    async def send(self, notification: Notification) -> None:
        if not self._sender:
            raise ConfigurationError("SES_SENDER_EMAIL not configured")

        client = self._get_client()
        try:
            await asyncio.to_thread(
                client.send_email,
                Source=self._sender,
                Destination={"ToAddresses": [notification.recipient]},
                Message={
                    "Subject": {"Data": notification.subject, "Charset": "UTF-8"},
                    "Body": {
                        "Text": {"Data": notification.text_body, "Charset": "UTF-8"},
                        "Html": {"Data": notification.html_body, "Charset": "UTF-8"},
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise NotificationError(f"SES send failed: {e}") from e


class LogNotifier:
    """Writes the email to the log instead of sending it (local runs)."""

    def __init__(self):
        # Most recent messages, for inspection in tests and local runs
        self.sent: deque[Notification] = deque(maxlen=100)

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)
        logger.info(
            "Notification to %s: %s",
            notification.recipient,
            notification.subject,
            extra={"context": {"body": notification.text_body}},
        )
