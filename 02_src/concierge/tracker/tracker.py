"""Tracker implementation for creating TraceEvents."""

import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..logging_config import get_logger
from ..models import TraceEvent
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Records TraceEvents for dialog turns, submissions and worker runs."""

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Persists TraceEvents via direct track() calls."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage.

        Tracing never interrupts the caller: a failed write is only logged.
        """
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        try:
            await self._storage.save_trace_event(trace_event)
        except Exception as e:
            logger.warning("Failed to save trace event %s: %s", event_type, e)
