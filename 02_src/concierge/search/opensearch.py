"""Search index client for restaurant candidates."""

from typing import Protocol

import httpx

from ..errors import ConfigurationError, SearchError
from ..logging_config import get_logger
from ..models import CandidateRecord

logger = get_logger(__name__)


class ISearchIndex(Protocol):
    """Finds restaurant ids for a cuisine."""

    async def search(self, cuisine: str, limit: int = 50) -> list[CandidateRecord]:
        """Up to ``limit`` candidates, in index order."""
        ...


class OpenSearchIndex:
    """OpenSearch ``_search`` over HTTP with basic auth."""

    def __init__(
        self,
        endpoint: str | None,
        index: str = "restaurants",
        username: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._endpoint = endpoint.rstrip("/") if endpoint else None
        self._index = index
        self._auth = (username, password) if username else None
        self._timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def search(self, cuisine: str, limit: int = 50) -> list[CandidateRecord]:
        """Match on the Cuisine field and return the RestaurantID of each hit."""
        if not self._endpoint:
            raise ConfigurationError("OPENSEARCH_ENDPOINT not configured")

        query = {
            "size": limit,
            "query": {"match": {"Cuisine": cuisine.lower()}},
        }

        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

        try:
            response = await self._client.post(
                f"{self._endpoint}/{self._index}/_search",
                json=query,
                auth=self._auth,
            )
        except httpx.HTTPError as e:
            raise SearchError(f"OpenSearch unreachable: {e}") from e

        if not response.is_success:
            raise SearchError(
                f"OpenSearch request failed: {response.status_code} - {response.text[:200]}"
            )

        hits = (response.json().get("hits") or {}).get("hits") or []
        candidates = []
        for hit in hits:
            source = hit.get("_source") or {}
            restaurant_id = source.get("RestaurantID")
            if not restaurant_id:
                logger.debug("Skipping hit without RestaurantID: %s", hit.get("_id"))
                continue
            candidates.append(
                CandidateRecord(
                    restaurant_id=restaurant_id,
                    cuisine=source.get("Cuisine"),
                )
            )
        return candidates

    async def close(self) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None
