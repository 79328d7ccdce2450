"""Dining Concierge core module."""

from .app import Application, IApplication
from .config import Settings
from .dialog import (
    ChatSession,
    DialogController,
    IChatSession,
    IDialogController,
    INluEngine,
    LlmNluEngine,
)
from .errors import (
    ConciergeError,
    ConfigurationError,
    NotificationError,
    QueueError,
    SearchError,
    StoreError,
    SubmissionError,
)
from .llm import ILLMProvider, LLMProvider
from .models import (
    CandidateRecord,
    ConversationState,
    DialogAction,
    DialogPhase,
    DialogResponse,
    DialogTurn,
    DiningRequest,
    RestaurantDetail,
    SlotName,
    TraceEvent,
    UserPreference,
    WorkerResult,
    WorkerStatus,
    WorkItem,
)
from .notify import INotifier, LogNotifier, SesNotifier
from .queue import IWorkQueue, SqsWorkQueue, WorkQueue
from .search import ISearchIndex, OpenSearchIndex
from .storage import DynamoRecordStore, IStorage, Storage
from .submission import IRequestSubmitter, RequestSubmitter
from .tracker import ITracker, Tracker
from .worker import IQueueWorker, QueueWorker, WorkerScheduler

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Errors
    "ConciergeError",
    "ConfigurationError",
    "SubmissionError",
    "SearchError",
    "NotificationError",
    "QueueError",
    "StoreError",
    # Models
    "SlotName",
    "DialogPhase",
    "DialogAction",
    "DialogTurn",
    "DialogResponse",
    "ConversationState",
    "DiningRequest",
    "WorkItem",
    "CandidateRecord",
    "RestaurantDetail",
    "UserPreference",
    "WorkerResult",
    "WorkerStatus",
    "TraceEvent",
    # Components
    "IStorage",
    "Storage",
    "DynamoRecordStore",
    "IWorkQueue",
    "WorkQueue",
    "SqsWorkQueue",
    "ISearchIndex",
    "OpenSearchIndex",
    "INotifier",
    "SesNotifier",
    "LogNotifier",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMProvider",
    "INluEngine",
    "LlmNluEngine",
    "IRequestSubmitter",
    "RequestSubmitter",
    "IDialogController",
    "DialogController",
    "IChatSession",
    "ChatSession",
    "IQueueWorker",
    "QueueWorker",
    "WorkerScheduler",
]
