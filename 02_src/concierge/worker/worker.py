"""QueueWorker: fulfills one queued dining request per invocation."""

import asyncio
import json
import random
from typing import Protocol, Sequence

from ..logging_config import get_logger
from ..models import (
    DiningRequest,
    RestaurantDetail,
    WorkerResult,
    WorkerStatus,
    WorkItem,
)
from ..notify import INotifier, compose_notification
from ..queue import IWorkQueue
from ..search import ISearchIndex
from ..storage import IRecordStore
from ..tracker import ITracker

logger = get_logger(__name__)

SEARCH_LIMIT = 50
SUGGESTION_COUNT = 3


class IQueueWorker(Protocol):
    """One scheduled invocation of the fulfillment pipeline."""

    async def run_once(self) -> WorkerResult:
        """Process at most one work item. Never raises."""
        ...


def select_candidates(
    restaurant_ids: Sequence[str], k: int, rng: random.Random
) -> list[str]:
    """Up to ``k`` distinct ids, uniformly at random without replacement."""
    distinct = list(dict.fromkeys(restaurant_ids))
    return rng.sample(distinct, min(k, len(distinct)))


class QueueWorker:
    """Receive -> search -> select -> enrich -> notify -> acknowledge.

    Once a work item has been received it is acknowledged even when the
    notification could not be sent, so a request is never emailed twice but
    may be dropped. Only a failure before that point (search index down,
    queue error) leaves the item on the queue for redelivery after its
    visibility timeout.
    """

    def __init__(
        self,
        work_queue: IWorkQueue,
        search_index: ISearchIndex,
        record_store: IRecordStore,
        notifier: INotifier,
        tracker: ITracker | None = None,
        rng: random.Random | None = None,
        search_limit: int = SEARCH_LIMIT,
        suggestion_count: int = SUGGESTION_COUNT,
    ):
        self._queue = work_queue
        self._search = search_index
        self._records = record_store
        self._notifier = notifier
        self._tracker = tracker
        self._rng = rng or random.Random()
        self._search_limit = search_limit
        self._suggestion_count = suggestion_count

    async def run_once(self) -> WorkerResult:
        """Process at most one work item.

        Errors are logged and reported as a FAILED result.
        """
        try:
            result = await self._process_next()
        except Exception as e:
            logger.error("Error in queue worker: %s", e, exc_info=True)
            result = WorkerResult(status=WorkerStatus.FAILED, detail=str(e))

        if self._tracker and result.status is not WorkerStatus.EMPTY:
            await self._tracker.track(
                event_type="work_item_processed",
                actor="queue_worker",
                data={
                    "status": result.status.value,
                    "message_id": result.message_id,
                    "selected_ids": result.selected_ids,
                    "notified": result.notified,
                    "detail": result.detail,
                },
            )
        return result

    async def _process_next(self) -> WorkerResult:
        message = await self._queue.receive()
        if message is None:
            logger.debug("No messages in queue. Nothing to process.")
            return WorkerResult(status=WorkerStatus.EMPTY)

        try:
            request = DiningRequest.from_payload(json.loads(message.body))
        except (KeyError, TypeError, ValueError) as e:
            # A payload that cannot be parsed will never succeed; drop it
            logger.error("Malformed work item %s: %s", message.message_id, e)
            await self._queue.acknowledge(message.receipt_handle)
            return WorkerResult(
                status=WorkerStatus.FAILED,
                message_id=message.message_id,
                detail=f"malformed payload: {e}",
            )

        item = WorkItem(
            request=request,
            receipt_handle=message.receipt_handle,
            message_id=message.message_id,
            receive_count=message.receive_count,
        )
        logger.info(
            "Processing work item %s (receive #%s)",
            item.message_id,
            item.receive_count,
            extra={"context": request.to_payload()},
        )
        return await self._fulfill(item)

    async def _fulfill(self, item: WorkItem) -> WorkerResult:
        request = item.request

        candidates = await self._search.search(
            request.cuisine.lower(), limit=self._search_limit
        )
        logger.info("Found %s candidates for %s", len(candidates), request.cuisine)

        if not candidates:
            # An unmatchable cuisine must not come back forever
            await self._queue.acknowledge(item.receipt_handle)
            return WorkerResult(
                status=WorkerStatus.NO_CANDIDATES,
                message_id=item.message_id,
                detail=f"no restaurants for cuisine {request.cuisine!r}",
            )

        selected = select_candidates(
            [c.restaurant_id for c in candidates], self._suggestion_count, self._rng
        )
        logger.info("Selected restaurant IDs: %s", selected)

        restaurants = await self._fetch_details(selected)

        notified = True
        try:
            await self._notifier.send(compose_notification(request, restaurants))
            logger.info("Email sent successfully to: %s", request.email)
        except Exception as e:
            logger.error("Failed to send email to %s: %s", request.email, e)
            notified = False

        await self._queue.acknowledge(item.receipt_handle)

        return WorkerResult(
            status=WorkerStatus.PROCESSED,
            message_id=item.message_id,
            selected_ids=selected,
            notified=notified,
        )

    async def _fetch_details(self, business_ids: list[str]) -> list[RestaurantDetail]:
        """Look up all selected restaurants concurrently, keeping selection order."""
        results = await asyncio.gather(
            *(self._records.get_restaurant(business_id) for business_id in business_ids),
            return_exceptions=True,
        )

        details = []
        for business_id, result in zip(business_ids, results):
            if isinstance(result, Exception):
                logger.warning("Lookup failed for %s: %s", business_id, result)
                result = None
            details.append(result or RestaurantDetail.placeholder(business_id))
        return details
