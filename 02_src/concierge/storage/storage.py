"""SQLite storage implementation."""

import json
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    CandidateRecord,
    ConversationState,
    RestaurantDetail,
    TraceEvent,
    UserPreference,
)


def _to_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class IRecordStore(Protocol):
    """Read access to restaurant records, keyed by business id."""

    async def get_restaurant(self, business_id: str) -> RestaurantDetail | None:
        """Get a restaurant record, or None when not found."""
        ...


class IPreferenceStore(Protocol):
    """Last-known preferences keyed by email."""

    async def save_user_preference(self, preference: UserPreference) -> None:
        """Insert or overwrite the preference record."""
        ...


class IStorage(IRecordStore, IPreferenceStore, Protocol):
    """Persistent storage for all local system data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Conversation state
    async def save_conversation_state(
        self, user_id: str, state: ConversationState
    ) -> None:
        """Save the in-progress dialog state for a user."""
        ...

    async def get_conversation_state(self, user_id: str) -> ConversationState | None:
        """Get the in-progress dialog state for a user."""
        ...

    async def delete_conversation_state(self, user_id: str) -> None:
        """Forget a user's dialog state."""
        ...

    # Restaurants
    async def save_restaurant(self, detail: RestaurantDetail, cuisine: str) -> None:
        """Insert or replace a restaurant record."""
        ...

    async def search(self, cuisine: str, limit: int = 50) -> list[CandidateRecord]:
        """Restaurant ids for a cuisine."""
        ...

    # Preferences
    async def get_user_preference(self, email: str) -> UserPreference | None:
        """Get the last preference saved for an email."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Conversation state
    async def save_conversation_state(
        self, user_id: str, state: ConversationState
    ) -> None:
        """Save the in-progress dialog state for a user."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO conversation_states (user_id, state, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            """,
            (user_id, json.dumps(state.to_dict())),
        )
        await conn.commit()

    async def get_conversation_state(self, user_id: str) -> ConversationState | None:
        """Get the in-progress dialog state for a user."""
        conn = self._require_conn()

        cursor = await conn.execute(
            "SELECT state FROM conversation_states WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return ConversationState.from_dict(json.loads(row[0]))

    async def delete_conversation_state(self, user_id: str) -> None:
        """Forget a user's dialog state."""
        conn = self._require_conn()

        await conn.execute(
            "DELETE FROM conversation_states WHERE user_id = ?", (user_id,)
        )
        await conn.commit()

    # Restaurants
    async def save_restaurant(self, detail: RestaurantDetail, cuisine: str) -> None:
        """Insert or replace a restaurant record."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO restaurants
            (business_id, name, address, cuisine, rating, review_count, zip_code)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                detail.business_id,
                detail.name,
                detail.address,
                cuisine.strip().lower(),
                detail.rating,
                detail.review_count,
                detail.zip_code,
            ),
        )
        await conn.commit()

    async def get_restaurant(self, business_id: str) -> RestaurantDetail | None:
        """Get a restaurant record, or None when not found."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT business_id, name, address, rating, review_count, zip_code
            FROM restaurants
            WHERE business_id = ?
            """,
            (business_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return RestaurantDetail(
            business_id=row[0],
            name=row[1] or "Unknown Restaurant",
            address=row[2] or "Address not available",
            rating=row[3] or "N/A",
            review_count=row[4] or "N/A",
            zip_code=row[5] or "",
        )

    async def search(self, cuisine: str, limit: int = 50) -> list[CandidateRecord]:
        """Restaurant ids for a cuisine (local stand-in for the search index)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT business_id, cuisine
            FROM restaurants
            WHERE cuisine = ?
            ORDER BY business_id
            LIMIT ?
            """,
            (cuisine.strip().lower(), limit),
        )
        rows = await cursor.fetchall()

        return [CandidateRecord(restaurant_id=row[0], cuisine=row[1]) for row in rows]

    # Preferences
    async def save_user_preference(self, preference: UserPreference) -> None:
        """Insert or overwrite the preference record."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO user_preferences
            (email, location, cuisine, party_size, dining_date, dining_time, last_search_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                preference.email,
                preference.location,
                preference.cuisine,
                preference.party_size,
                preference.dining_date.isoformat(),
                preference.dining_time,
                _to_utc_iso(preference.last_search_at),
            ),
        )
        await conn.commit()

    async def get_user_preference(self, email: str) -> UserPreference | None:
        """Get the last preference saved for an email."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT email, location, cuisine, party_size, dining_date, dining_time,
                   last_search_at
            FROM user_preferences
            WHERE email = ?
            """,
            (email,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return UserPreference(
            email=row[0],
            location=row[1],
            cuisine=row[2],
            party_size=row[3],
            dining_date=date.fromisoformat(row[4]),
            dining_time=row[5],
            last_search_at=_from_iso(row[6]),
        )

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                _to_utc_iso(event.timestamp),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters (newest first)."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_to_utc_iso(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_from_iso(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "conversation_states",
            "restaurants",
            "user_preferences",
            "trace_events",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
