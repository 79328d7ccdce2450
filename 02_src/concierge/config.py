"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "dining_concierge.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings, read from the environment."""

    database_url: str | None = None
    queue_name: str | None = "dining-requests"
    queue_backend: str = "local"  # "local" | "sqs"
    queue_visibility_timeout: float = 30.0
    sqs_queue_url: str | None = None
    store_backend: str = "local"  # "local" | "dynamodb"
    restaurants_table: str = "yelp-restaurants"
    preferences_table: str = "user-state"
    search_backend: str = "opensearch"  # "opensearch" | "sqlite"
    opensearch_endpoint: str | None = None
    opensearch_index: str = "restaurants"
    opensearch_username: str | None = None
    opensearch_password: str | None = None
    notifier_backend: str = "ses"  # "ses" | "log"
    ses_sender_email: str | None = None
    region: str = "us-east-1"
    timezone: str = "America/New_York"
    worker_interval_seconds: float = 60.0
    worker_enabled: bool = True
    api_host: str = "localhost"
    api_port: int = 8000
    llm_model: str = "claude-3-5-sonnet-20241022"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            queue_backend=os.getenv("QUEUE_BACKEND", defaults.queue_backend).lower(),
            # An empty QUEUE_NAME means "not configured"
            queue_name=os.getenv("QUEUE_NAME", defaults.queue_name) or None,
            queue_visibility_timeout=float(
                os.getenv("QUEUE_VISIBILITY_TIMEOUT", defaults.queue_visibility_timeout)
            ),
            sqs_queue_url=os.getenv("SQS_QUEUE_URL") or None,
            store_backend=os.getenv("STORE_BACKEND", defaults.store_backend).lower(),
            restaurants_table=os.getenv("RESTAURANTS_TABLE", defaults.restaurants_table),
            preferences_table=os.getenv("PREFERENCES_TABLE", defaults.preferences_table),
            search_backend=os.getenv("SEARCH_BACKEND", defaults.search_backend).lower(),
            opensearch_endpoint=os.getenv("OPENSEARCH_ENDPOINT") or None,
            opensearch_index=os.getenv("OPENSEARCH_INDEX", defaults.opensearch_index),
            opensearch_username=os.getenv("OPENSEARCH_USERNAME"),
            opensearch_password=os.getenv("OPENSEARCH_PASSWORD"),
            notifier_backend=os.getenv(
                "NOTIFIER_BACKEND", defaults.notifier_backend
            ).lower(),
            ses_sender_email=os.getenv("SES_SENDER_EMAIL") or None,
            region=os.getenv("REGION", defaults.region),
            timezone=os.getenv("TIMEZONE", defaults.timezone),
            worker_interval_seconds=float(
                os.getenv("WORKER_INTERVAL_SECONDS", defaults.worker_interval_seconds)
            ),
            worker_enabled=_env_bool("WORKER_ENABLED", defaults.worker_enabled),
            api_host=os.getenv("API_HOST", defaults.api_host),
            api_port=int(os.getenv("API_PORT", str(defaults.api_port))),
            llm_model=os.getenv("LLM_MODEL", defaults.llm_model),
        )
