"""Pytest configuration and fixtures."""

import random
import sys
from datetime import datetime
from pathlib import Path
from unittest.mock import AsyncMock, Mock
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

TZ = ZoneInfo("America/New_York")
# Wednesday afternoon; every date/time test is relative to this instant
FIXED_NOW = datetime(2030, 5, 15, 14, 0, tzinfo=TZ)


class FakeClock:
    """Monotonic seconds that only move when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def complete_slots(**overrides) -> dict:
    """A slot map that passes validation at FIXED_NOW."""
    slots = {
        "location": "NYC",
        "cuisine": "Thai",
        "party_size": "4",
        "dining_date": "2030-05-16",
        "dining_time": "19:30",
        "email": "diner@example.com",
    }
    slots.update(overrides)
    return slots


@pytest.fixture
def now():
    return FIXED_NOW


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from concierge.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def queue_clock():
    return FakeClock()


@pytest_asyncio.fixture
async def work_queue(queue_clock):
    """Create in-memory work queue with a controllable clock."""
    from concierge.queue import WorkQueue

    q = WorkQueue(":memory:", queue_name="test-queue", visibility_timeout=30, clock=queue_clock)
    await q.init()
    yield q
    await q.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from concierge.tracker import Tracker

    return Tracker(storage=storage)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value='{"intent": "FallbackIntent", "slots": {}}')
    return llm


@pytest.fixture
def submitter(work_queue, storage, tracker):
    from concierge.submission import RequestSubmitter

    return RequestSubmitter(work_queue=work_queue, preference_store=storage, tracker=tracker)


@pytest.fixture
def controller(submitter, tracker):
    from concierge.dialog import DialogController

    return DialogController(submitter=submitter, tracker=tracker, clock=lambda: FIXED_NOW)


@pytest.fixture
def mock_search():
    search = Mock()
    search.search = AsyncMock(return_value=[])
    return search


@pytest.fixture
def mock_notifier():
    notifier = Mock()
    notifier.send = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def worker(work_queue, mock_search, storage, mock_notifier, tracker):
    from concierge.worker import QueueWorker

    return QueueWorker(
        work_queue=work_queue,
        search_index=mock_search,
        record_store=storage,
        notifier=mock_notifier,
        tracker=tracker,
        rng=random.Random(7),
    )
