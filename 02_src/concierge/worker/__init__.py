"""Queue worker module."""

from .scheduler import WorkerScheduler
from .worker import IQueueWorker, QueueWorker, select_candidates

__all__ = ["IQueueWorker", "QueueWorker", "WorkerScheduler", "select_candidates"]
