"""Work queue module."""

from .sqs_queue import SqsWorkQueue
from .work_queue import IWorkQueue, ReceivedMessage, WorkQueue

__all__ = ["IWorkQueue", "ReceivedMessage", "SqsWorkQueue", "WorkQueue"]
