"""SQLite-backed work queue with visibility timeout."""

import json
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import ConfigurationError
from ..logging_config import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS work_items (
    id TEXT PRIMARY KEY,
    queue_name TEXT NOT NULL,
    body TEXT NOT NULL,
    enqueued_at REAL NOT NULL,
    visible_at REAL NOT NULL,
    receipt_handle TEXT,
    receive_count INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_work_items_visible
    ON work_items (queue_name, visible_at);
"""

# Attempts to claim an item before reporting the queue as empty.
CLAIM_ATTEMPTS = 3


@dataclass
class ReceivedMessage:
    """A claimed queue message. Hidden from other receivers until acknowledged
    or until the visibility timeout passes."""

    message_id: str
    body: str
    receipt_handle: str
    receive_count: int


class IWorkQueue(Protocol):
    """Durable queue of completed dining requests."""

    async def enqueue(self, payload: dict) -> str:
        """Append a JSON payload. Returns the message id."""
        ...

    async def receive(self) -> ReceivedMessage | None:
        """Claim at most one visible message without waiting."""
        ...

    async def acknowledge(self, receipt_handle: str) -> bool:
        """Remove a claimed message. False when the handle is stale."""
        ...

    async def count(self) -> int:
        """Messages in the queue, visible or in flight."""
        ...

    async def clear(self) -> None:
        """Drop every message."""
        ...


class WorkQueue:
    """Work queue stored in a SQLite table.

    Receiving a message does not remove it: the row is hidden for
    ``visibility_timeout`` seconds and gets a fresh receipt handle. Only
    ``acknowledge`` with the current handle deletes it; otherwise the message
    becomes visible again and is redelivered.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        queue_name: str | None = "dining-requests",
        visibility_timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self._db_path = resolve_db_path(db_path)
        self._queue_name = queue_name
        self._visibility_timeout = visibility_timeout
        self._clock = clock
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Open the connection and create the queue table."""
        self._conn = await aiosqlite.connect(self._db_path)
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_ready(self) -> tuple[aiosqlite.Connection, str]:
        if not self._queue_name:
            raise ConfigurationError("QUEUE_NAME not configured")
        if not self._conn:
            raise RuntimeError("Work queue not initialized")
        return self._conn, self._queue_name

    async def enqueue(self, payload: dict) -> str:
        """Append a JSON payload. Returns the message id."""
        conn, queue_name = self._require_ready()

        message_id = str(uuid.uuid4())
        now = self._clock()
        await conn.execute(
            """
            INSERT INTO work_items (id, queue_name, body, enqueued_at, visible_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (message_id, queue_name, json.dumps(payload), now, now),
        )
        await conn.commit()

        logger.debug("Enqueued %s on %s", message_id, queue_name)
        return message_id

    async def receive(self) -> ReceivedMessage | None:
        """Claim the oldest visible message, or return None when there is none."""
        conn, queue_name = self._require_ready()

        for _ in range(CLAIM_ATTEMPTS):
            now = self._clock()
            cursor = await conn.execute(
                """
                SELECT id, body, receive_count
                FROM work_items
                WHERE queue_name = ? AND visible_at <= ?
                ORDER BY enqueued_at ASC, rowid ASC
                LIMIT 1
                """,
                (queue_name, now),
            )
            row = await cursor.fetchone()
            if not row:
                return None

            receipt_handle = uuid.uuid4().hex
            # Guarded update: a concurrent receiver may have claimed the row
            # between the SELECT and here.
            cursor = await conn.execute(
                """
                UPDATE work_items
                SET receipt_handle = ?, visible_at = ?, receive_count = receive_count + 1
                WHERE id = ? AND visible_at <= ?
                """,
                (receipt_handle, now + self._visibility_timeout, row[0], now),
            )
            await conn.commit()

            if cursor.rowcount == 1:
                return ReceivedMessage(
                    message_id=row[0],
                    body=row[1],
                    receipt_handle=receipt_handle,
                    receive_count=row[2] + 1,
                )

        return None

    async def acknowledge(self, receipt_handle: str) -> bool:
        """Delete the message claimed with ``receipt_handle``."""
        conn, queue_name = self._require_ready()

        cursor = await conn.execute(
            "DELETE FROM work_items WHERE queue_name = ? AND receipt_handle = ?",
            (queue_name, receipt_handle),
        )
        await conn.commit()

        if cursor.rowcount == 0:
            logger.warning("Acknowledge with stale receipt handle %s", receipt_handle)
            return False
        return True

    async def count(self) -> int:
        """Messages in the queue, visible or not."""
        conn, queue_name = self._require_ready()

        cursor = await conn.execute(
            "SELECT COUNT(*) FROM work_items WHERE queue_name = ?", (queue_name,)
        )
        row = await cursor.fetchone()
        return row[0]

    async def clear(self) -> None:
        conn, queue_name = self._require_ready()

        await conn.execute("DELETE FROM work_items WHERE queue_name = ?", (queue_name,))
        await conn.commit()
