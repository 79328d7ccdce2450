"""Tests for WorkerScheduler."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from concierge.models import WorkerResult, WorkerStatus
from concierge.worker import WorkerScheduler


@pytest.fixture
def mock_worker():
    worker = Mock()
    worker.run_once = AsyncMock(return_value=WorkerResult(status=WorkerStatus.EMPTY))
    return worker


class TestWorkerScheduler:
    """Tests for the fixed-interval trigger."""

    @pytest.mark.asyncio
    async def test_runs_on_start(self, mock_worker):
        scheduler = WorkerScheduler(mock_worker, interval=60)

        await scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert mock_worker.run_once.await_count == 1

    @pytest.mark.asyncio
    async def test_runs_repeatedly(self, mock_worker):
        scheduler = WorkerScheduler(mock_worker, interval=0.01)

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert mock_worker.run_once.await_count >= 3

    @pytest.mark.asyncio
    async def test_stop_halts_runs(self, mock_worker):
        scheduler = WorkerScheduler(mock_worker, interval=0.01)

        await scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()
        count = mock_worker.run_once.await_count
        await asyncio.sleep(0.05)

        assert not scheduler.running
        assert mock_worker.run_once.await_count == count

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, mock_worker):
        scheduler = WorkerScheduler(mock_worker, interval=60)

        await scheduler.start()
        await scheduler.start()
        await asyncio.sleep(0.05)
        await scheduler.stop()

        assert mock_worker.run_once.await_count == 1

    @pytest.mark.asyncio
    async def test_error_does_not_stop_loop(self, mock_worker):
        mock_worker.run_once.side_effect = [
            RuntimeError("boom"),
            WorkerResult(status=WorkerStatus.EMPTY),
            WorkerResult(status=WorkerStatus.EMPTY),
        ] + [WorkerResult(status=WorkerStatus.EMPTY)] * 100
        scheduler = WorkerScheduler(mock_worker, interval=0.01)

        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        assert mock_worker.run_once.await_count >= 2

    @pytest.mark.asyncio
    async def test_tick(self, mock_worker):
        """Test a manual invocation outside the timer."""
        scheduler = WorkerScheduler(mock_worker, interval=60)

        result = await scheduler.tick()

        assert result.status is WorkerStatus.EMPTY
        mock_worker.run_once.assert_awaited_once()
