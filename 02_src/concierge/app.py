"""Application bootstrap and lifecycle management."""

from functools import partial
from typing import Protocol

from .config import Settings, resolve_db_path
from .dialog import ChatSession, DialogController, IChatSession, LlmNluEngine
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .notify import INotifier, LogNotifier, SesNotifier
from .queue import IWorkQueue, SqsWorkQueue, WorkQueue
from .search import ISearchIndex, OpenSearchIndex
from .storage import DynamoRecordStore, IPreferenceStore, IRecordStore, IStorage, Storage
from .submission import RequestSubmitter
from .tracker import ITracker, Tracker
from .validation import current_time
from .worker import QueueWorker, WorkerScheduler

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        db_path: str | None = None,
        llm_provider: ILLMProvider | None = None,
        search_index: ISearchIndex | None = None,
        notifier: INotifier | None = None,
    ):
        self._settings = settings or Settings.from_env()
        self._db_path = resolve_db_path(
            db_path if db_path is not None else self._settings.database_url
        )

        # Overrides (tests, local runs); built from settings when None
        self._llm: ILLMProvider | None = llm_provider
        self._search_index: ISearchIndex | None = search_index
        self._notifier: INotifier | None = notifier

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._work_queue: IWorkQueue | None = None
        self._records: IRecordStore | None = None
        self._preferences: IPreferenceStore | None = None
        self._tracker: ITracker | None = None
        self._controller: DialogController | None = None
        self._chat_session: IChatSession | None = None
        self._worker: QueueWorker | None = None
        self._scheduler: WorkerScheduler | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        settings = self._settings
        clock = partial(current_time, settings.timezone)

        # 1. Storage, queue and record store (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        self._work_queue = self._build_work_queue()
        await self._work_queue.init()
        self._records = self._preferences = self._build_record_store()
        logger.info(
            "Storage initialized; work queue: %s, record store: %s",
            type(self._work_queue).__name__,
            type(self._records).__name__,
        )

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. External collaborators
        if self._search_index is None:
            self._search_index = self._build_search_index()
        if self._notifier is None:
            self._notifier = self._build_notifier()
        if self._llm is None:
            self._llm = LLMProvider(model=settings.llm_model)
        logger.info(
            "Search backend: %s, notifier: %s",
            type(self._search_index).__name__,
            type(self._notifier).__name__,
        )

        # 4. Dialog side: submitter -> controller -> chat session
        submitter = RequestSubmitter(
            work_queue=self._work_queue,
            preference_store=self._preferences,
            tracker=self._tracker,
        )
        self._controller = DialogController(
            submitter=submitter, tracker=self._tracker, clock=clock
        )
        self._chat_session = ChatSession(
            nlu_engine=LlmNluEngine(self._llm),
            controller=self._controller,
            storage=self._storage,
            tracker=self._tracker,
            clock=clock,
        )
        await self._chat_session.start()
        logger.info("ChatSession started")

        # 5. Fulfillment side: worker + scheduler
        self._worker = QueueWorker(
            work_queue=self._work_queue,
            search_index=self._search_index,
            record_store=self._records,
            notifier=self._notifier,
            tracker=self._tracker,
        )
        self._scheduler = WorkerScheduler(
            self._worker, interval=settings.worker_interval_seconds
        )
        if settings.worker_enabled:
            await self._scheduler.start()
        logger.info("All components initialized successfully")

    def _build_work_queue(self) -> IWorkQueue:
        settings = self._settings
        if settings.queue_backend == "sqs":
            return SqsWorkQueue(queue_url=settings.sqs_queue_url, region=settings.region)
        return WorkQueue(
            self._db_path,
            queue_name=settings.queue_name,
            visibility_timeout=settings.queue_visibility_timeout,
        )

    def _build_record_store(self) -> IRecordStore:
        settings = self._settings
        if settings.store_backend == "dynamodb":
            return DynamoRecordStore(
                restaurants_table=settings.restaurants_table,
                preferences_table=settings.preferences_table,
                region=settings.region,
            )
        return self._storage

    def _build_search_index(self) -> ISearchIndex:
        settings = self._settings
        if settings.search_backend == "sqlite":
            return self._storage
        return OpenSearchIndex(
            endpoint=settings.opensearch_endpoint,
            index=settings.opensearch_index,
            username=settings.opensearch_username,
            password=settings.opensearch_password,
        )

    def _build_notifier(self) -> INotifier:
        settings = self._settings
        if settings.notifier_backend == "log":
            return LogNotifier()
        return SesNotifier(sender=settings.ses_sender_email, region=settings.region)

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._scheduler:
            await self._scheduler.stop()
        if self._chat_session:
            await self._chat_session.stop()
        if isinstance(self._search_index, OpenSearchIndex):
            await self._search_index.close()
        if self._work_queue:
            await self._work_queue.close()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._scheduler:
            await self._scheduler.stop()

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")
        if self._work_queue:
            await self._work_queue.clear()
            logger.info("Work queue cleared")

        if self._scheduler and self._settings.worker_enabled:
            await self._scheduler.start()
        logger.info("Reset complete")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def work_queue(self) -> IWorkQueue:
        """Get work queue instance."""
        if not self._work_queue:
            raise RuntimeError("Application not started")
        return self._work_queue

    @property
    def tracker(self) -> ITracker:
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def dialog_controller(self) -> DialogController:
        """Get dialog controller instance."""
        if not self._controller:
            raise RuntimeError("Application not started")
        return self._controller

    @property
    def chat_session(self) -> IChatSession:
        """Get chat session instance."""
        if not self._chat_session:
            raise RuntimeError("Application not started")
        return self._chat_session

    @property
    def scheduler(self) -> WorkerScheduler:
        """Get worker scheduler instance."""
        if not self._scheduler:
            raise RuntimeError("Application not started")
        return self._scheduler
