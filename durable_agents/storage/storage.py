"""SQLite storage implementation."""

import json
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    Message,
    MessageType,
    Priority,
    TraceEvent,
    parse_payload,
)


class IStorage(Protocol):
    """Durable store: key/value entries, queue rows and trace rows."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Key/value
    async def get(self, key: str) -> Any | None:
        """Get a JSON value, or None when absent or expired."""
        ...

    async def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a JSON value, optionally expiring after `ttl` seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key (no-op when absent)."""
        ...

    # Queue rows
    async def insert_message(self, message: Message) -> None:
        """Insert a new queue row. Raises on duplicate id."""
        ...

    async def select_pending(self, recipient: str, limit: int = 50) -> list[Message]:
        """Unprocessed messages for a recipient in priority+FIFO order."""
        ...

    async def update_processed(self, message_id: str, processed_at: datetime) -> bool:
        """Mark a row processed. Returns False when the id is unknown."""
        ...

    async def get_message(self, message_id: str) -> Message | None:
        """Get a queue row by id."""
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


def _to_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value).astimezone(timezone.utc)


class Storage:
    """SQLite storage implementation."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._clock = clock
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

    # Key/value
    async def get(self, key: str) -> Any | None:
        """Get a JSON value, or None when absent or expired."""
        conn = self._require_conn()

        cursor = await conn.execute(
            "SELECT value, expires_at FROM kv_entries WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if not row:
            return None

        value, expires_at = row
        if expires_at is not None and expires_at <= self._clock():
            await self.delete(key)
            return None

        return json.loads(value)

    async def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a JSON value, optionally expiring after `ttl` seconds."""
        conn = self._require_conn()

        expires_at = self._clock() + ttl if ttl is not None else None
        await conn.execute(
            """
            INSERT OR REPLACE INTO kv_entries (key, value, expires_at, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            """,
            (key, json.dumps(value), expires_at),
        )
        await conn.commit()

    async def delete(self, key: str) -> None:
        """Delete a key (no-op when absent)."""
        conn = self._require_conn()

        await conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
        await conn.commit()

    # Queue rows
    async def insert_message(self, message: Message) -> None:
        """Insert a new queue row. Raises on duplicate id."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO queue_messages
            (id, sender, recipient, type, payload, priority, priority_rank,
             timestamp, processed, processed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, NULL)
            """,
            (
                message.id,
                message.sender,
                message.recipient,
                message.type.value,
                message.payload.model_dump_json(),
                message.priority.value,
                message.priority.rank,
                message.timestamp,
            ),
        )
        await conn.commit()

    async def select_pending(self, recipient: str, limit: int = 50) -> list[Message]:
        """Unprocessed messages for a recipient in priority+FIFO order."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, sender, recipient, type, payload, priority, timestamp,
                   processed, processed_at
            FROM queue_messages
            WHERE recipient = ? AND processed = 0
            ORDER BY priority_rank DESC, timestamp ASC, seq ASC
            LIMIT ?
            """,
            (recipient, limit),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    async def update_processed(self, message_id: str, processed_at: datetime) -> bool:
        """Mark a row processed. Returns False when the id is unknown."""
        conn = self._require_conn()

        # Keep the first processed_at so re-marking is a no-op
        cursor = await conn.execute(
            """
            UPDATE queue_messages
            SET processed = 1, processed_at = COALESCE(processed_at, ?)
            WHERE id = ?
            """,
            (_to_utc_iso(processed_at), message_id),
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def get_message(self, message_id: str) -> Message | None:
        """Get a queue row by id."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, sender, recipient, type, payload, priority, timestamp,
                   processed, processed_at
            FROM queue_messages
            WHERE id = ?
            """,
            (message_id,),
        )
        row = await cursor.fetchone()
        if not row:
            return None
        return self._row_to_message(row)

    @staticmethod
    def _row_to_message(row: tuple) -> Message:
        message_type = MessageType(row[3])
        return Message(
            id=row[0],
            sender=row[1],
            recipient=row[2],
            type=message_type,
            payload=parse_payload(message_type, json.loads(row[4])),
            priority=Priority(row[5]),
            timestamp=row[6],
            processed=bool(row[7]),
            processed_at=_from_iso(row[8]),
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
        params: list[Any] = []

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

        for table in ["kv_entries", "queue_messages", "trace_events"]:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
