"""DynamoDB record and preference store."""

import asyncio
from datetime import date, datetime, timezone
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StoreError
from ..logging_config import get_logger
from ..models import RestaurantDetail, UserPreference

logger = get_logger(__name__)


def _string(item: dict, name: str) -> str | None:
    return (item.get(name) or {}).get("S")


def _number(item: dict, name: str) -> str | None:
    return (item.get(name) or {}).get("N")


class DynamoRecordStore:
    """Restaurant records and user preferences in two DynamoDB tables.

    Restaurants are keyed by ``BusinessID``; preferences by ``Email``.
    """

    def __init__(
        self,
        restaurants_table: str = "yelp-restaurants",
        preferences_table: str = "user-state",
        region: str = "us-east-1",
        client: Any = None,
    ):
        self._restaurants_table = restaurants_table
        self._preferences_table = preferences_table
        self._region = region
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("dynamodb", region_name=self._region)
        return self._client

    async def _call(self, operation: str, **kwargs) -> dict:
        method = getattr(self._get_client(), operation)
        try:
            return await asyncio.to_thread(method, **kwargs)
        except (ClientError, BotoCoreError) as e:
            raise StoreError(f"DynamoDB {operation} failed: {e}") from e

    async def get_restaurant(self, business_id: str) -> RestaurantDetail | None:
        """Get a restaurant record, or None when not found."""
        response = await self._call(
            "get_item",
            TableName=self._restaurants_table,
            Key={"BusinessID": {"S": business_id}},
        )
        item = response.get("Item")
        if not item:
            return None

        return RestaurantDetail(
            business_id=business_id,
            name=_string(item, "Name") or "Unknown Restaurant",
            address=_string(item, "Address") or "Address not available",
            rating=_number(item, "Rating") or "N/A",
            review_count=_number(item, "NumberOfReviews") or "N/A",
            zip_code=_string(item, "ZipCode") or "",
        )

    async def save_user_preference(self, preference: UserPreference) -> None:
        """Insert or overwrite the preference item for the email."""
        last_search_at = preference.last_search_at
        if last_search_at.tzinfo is None:
            last_search_at = last_search_at.replace(tzinfo=timezone.utc)

        await self._call(
            "put_item",
            TableName=self._preferences_table,
            Item={
                "Email": {"S": preference.email},
                "Location": {"S": preference.location},
                "Cuisine": {"S": preference.cuisine},
                "NumberOfPeople": {"S": str(preference.party_size)},
                "DiningDate": {"S": preference.dining_date.isoformat()},
                "DiningTime": {"S": preference.dining_time},
                "LastSearchTimestamp": {
                    "S": last_search_at.astimezone(timezone.utc).isoformat()
                },
            },
        )
        logger.debug("Preference saved for %s", preference.email)

    async def get_user_preference(self, email: str) -> UserPreference | None:
        """Get the last preference saved for an email."""
        response = await self._call(
            "get_item",
            TableName=self._preferences_table,
            Key={"Email": {"S": email}},
        )
        item = response.get("Item")
        if not item:
            return None

        return UserPreference(
            email=email,
            location=_string(item, "Location") or "",
            cuisine=_string(item, "Cuisine") or "",
            party_size=int(_string(item, "NumberOfPeople") or 0),
            dining_date=date.fromisoformat(_string(item, "DiningDate")),
            dining_time=_string(item, "DiningTime") or "",
            last_search_at=datetime.fromisoformat(_string(item, "LastSearchTimestamp")),
        )
