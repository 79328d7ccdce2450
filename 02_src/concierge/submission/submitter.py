"""RequestSubmitter implementation."""

from datetime import datetime, timezone
from typing import Protocol

from ..errors import ConciergeError, SubmissionError
from ..logging_config import get_logger
from ..models import DiningRequest, UserPreference
from ..queue import IWorkQueue
from ..storage import IPreferenceStore
from ..tracker import ITracker

logger = get_logger(__name__)


class IRequestSubmitter(Protocol):
    """Hands a completed request to the fulfillment pipeline."""

    async def submit(self, request: DiningRequest) -> str:
        """Enqueue the request. Returns the queue message id."""
        ...


class RequestSubmitter:
    """Enqueues completed requests and records last-known preferences."""

    def __init__(
        self,
        work_queue: IWorkQueue,
        preference_store: IPreferenceStore | None = None,
        tracker: ITracker | None = None,
    ):
        self._queue = work_queue
        self._preferences = preference_store
        self._tracker = tracker

    async def submit(self, request: DiningRequest) -> str:
        """Enqueue the request, then save the user's preferences.

        Raises ConfigurationError when the queue is not configured and
        SubmissionError for any other queue failure. Preference failures are
        logged and ignored.
        """
        try:
            message_id = await self._queue.enqueue(request.to_payload())
        except ConciergeError:
            raise
        except Exception as e:
            raise SubmissionError(f"Failed to enqueue dining request: {e}") from e

        logger.info(
            "Dining request queued: %s",
            message_id,
            extra={"context": request.to_payload()},
        )

        await self._save_preference(request)

        if self._tracker:
            await self._tracker.track(
                event_type="request_submitted",
                actor="request_submitter",
                data={
                    "message_id": message_id,
                    "cuisine": request.cuisine,
                    "location": request.location,
                    "party_size": request.party_size,
                },
            )

        return message_id

    async def _save_preference(self, request: DiningRequest) -> None:
        if self._preferences is None:
            return
        try:
            await self._preferences.save_user_preference(
                UserPreference.from_request(request, datetime.now(timezone.utc))
            )
        except Exception as e:
            logger.warning("Preference save skipped for %s: %s", request.email, e)
