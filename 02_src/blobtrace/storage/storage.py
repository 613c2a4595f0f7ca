"""SQLite storage implementation."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import BlobNotFoundError
from ..models import (
    BlobHandle,
    BlobNotification,
    BusMessage,
    Operation,
    OperationKind,
    StoredBlob,
    Topic,
    TraceEvent,
)
from ..models.blobs import DEFAULT_ACCOUNT_URL


def _to_db(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts else None


def _from_db(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class IObjectStore(Protocol):
    """Object store collaborator: blobs and their metadata sets."""

    async def upload(
        self, container: str, name: str, content: bytes, content_type: str
    ) -> BlobHandle:
        """Store blob content, replacing any previous blob and its metadata."""
        ...

    async def set_metadata(self, handle: BlobHandle, metadata: dict[str, str]) -> None:
        """Replace the metadata set of an existing blob."""
        ...

    async def get_metadata(self, handle: BlobHandle) -> dict[str, str]:
        """Get the metadata set of an existing blob."""
        ...

    async def download(self, handle: BlobHandle) -> StoredBlob:
        """Read blob content and properties."""
        ...


class IStorage(IObjectStore, Protocol):
    """Persistent storage for all system data (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Storage event notifications
    async def get_pending_notifications(self, limit: int = 100) -> list[BlobNotification]:
        """Get undelivered blob-created notifications (oldest first)."""
        ...

    async def mark_notification_delivered(self, notification_id: str) -> None:
        """Mark a notification as delivered."""
        ...

    # Operations
    async def save_operation(self, operation: Operation) -> None:
        """Save a finished operation with its tags."""
        ...

    async def get_operations(
        self,
        trace_id: str | None = None,
        name: str | None = None,
        limit: int = 100,
    ) -> list[Operation]:
        """Get operations with optional filters (newest first)."""
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

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        ...

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(
        self,
        db_path: str | Path | None = None,
        account_url: str = DEFAULT_ACCOUNT_URL,
    ):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._account_url = account_url
        self._conn: aiosqlite.Connection | None = None

    @property
    def account_url(self) -> str:
        return self._account_url

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

    # Blobs
    async def upload(
        self, container: str, name: str, content: bytes, content_type: str
    ) -> BlobHandle:
        """Store blob content and queue a blob-created notification atomically."""
        conn = self._require_conn()
        now = datetime.now(timezone.utc)

        try:
            await conn.execute(
                """
                INSERT INTO blobs (container, name, content, content_type, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (container, name) DO UPDATE SET
                    content = excluded.content,
                    content_type = excluded.content_type,
                    created_at = excluded.created_at
                """,
                (container, name, content, content_type, _to_db(now)),
            )
            # Overwriting a blob drops its metadata
            await conn.execute(
                "DELETE FROM blob_metadata WHERE container = ? AND blob_name = ?",
                (container, name),
            )
            await conn.execute(
                """
                INSERT INTO blob_notifications (id, container, blob_name, api, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (str(uuid.uuid4()), container, name, "PutBlob", _to_db(now)),
            )
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

        return BlobHandle(container=container, name=name, account_url=self._account_url)

    async def _ensure_blob(self, handle: BlobHandle) -> None:
        conn = self._require_conn()
        cursor = await conn.execute(
            "SELECT 1 FROM blobs WHERE container = ? AND name = ?",
            (handle.container, handle.name),
        )
        if not await cursor.fetchone():
            raise BlobNotFoundError(handle.container, handle.name)

    async def set_metadata(self, handle: BlobHandle, metadata: dict[str, str]) -> None:
        """Replace the metadata set of an existing blob; all or nothing."""
        conn = self._require_conn()
        await self._ensure_blob(handle)

        try:
            await conn.execute(
                "DELETE FROM blob_metadata WHERE container = ? AND blob_name = ?",
                (handle.container, handle.name),
            )
            await conn.executemany(
                """
                INSERT INTO blob_metadata (container, blob_name, key, value)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (handle.container, handle.name, key, str(value))
                    for key, value in metadata.items()
                ],
            )
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    async def get_metadata(self, handle: BlobHandle) -> dict[str, str]:
        """Get the metadata set of an existing blob."""
        conn = self._require_conn()
        await self._ensure_blob(handle)

        cursor = await conn.execute(
            """
            SELECT key, value
            FROM blob_metadata
            WHERE container = ? AND blob_name = ?
            """,
            (handle.container, handle.name),
        )
        rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    async def download(self, handle: BlobHandle) -> StoredBlob:
        """Read blob content and properties."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT content, content_type, created_at
            FROM blobs
            WHERE container = ? AND name = ?
            """,
            (handle.container, handle.name),
        )
        row = await cursor.fetchone()

        if not row:
            raise BlobNotFoundError(handle.container, handle.name)

        return StoredBlob(
            handle=handle,
            content=bytes(row[0]),
            content_type=row[1],
            created_at=_from_db(row[2]),
        )

    # Storage event notifications
    async def get_pending_notifications(self, limit: int = 100) -> list[BlobNotification]:
        """Get undelivered blob-created notifications (oldest first)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, container, blob_name, api, created_at
            FROM blob_notifications
            WHERE delivered_at IS NULL
            ORDER BY created_at ASC, rowid ASC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()

        return [
            BlobNotification(
                id=row[0],
                container=row[1],
                blob_name=row[2],
                api=row[3],
                created_at=_from_db(row[4]),
            )
            for row in rows
        ]

    async def mark_notification_delivered(self, notification_id: str) -> None:
        """Mark a notification as delivered."""
        conn = self._require_conn()

        await conn.execute(
            "UPDATE blob_notifications SET delivered_at = ? WHERE id = ?",
            (_to_db(datetime.now(timezone.utc)), notification_id),
        )
        await conn.commit()

    # Operations
    async def save_operation(self, operation: Operation) -> None:
        """Save a finished operation with its tags."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT OR REPLACE INTO operations
            (span_id, trace_id, parent_span_id, name, kind, trace_state,
             status, error, start_time, end_time)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                operation.span_id,
                operation.trace_id,
                operation.parent_span_id,
                operation.name,
                operation.kind.value,
                operation.trace_state,
                operation.status,
                operation.error,
                _to_db(operation.start_time),
                _to_db(operation.end_time),
            ),
        )
        await conn.execute(
            "DELETE FROM operation_tags WHERE span_id = ?", (operation.span_id,)
        )
        await conn.executemany(
            """
            INSERT INTO operation_tags (span_id, position, name, value)
            VALUES (?, ?, ?, ?)
            """,
            [
                (operation.span_id, position, name, value)
                for position, (name, value) in enumerate(operation.tags)
            ],
        )
        await conn.commit()

    async def get_operations(
        self,
        trace_id: str | None = None,
        name: str | None = None,
        limit: int = 100,
    ) -> list[Operation]:
        """Get operations with optional filters (newest first)."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if trace_id:
            conditions.append("trace_id = ?")
            params.append(trace_id)
        if name:
            conditions.append("name = ?")
            params.append(name)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT span_id, trace_id, parent_span_id, name, kind, trace_state,
                   status, error, start_time, end_time
            FROM operations
            {where_clause}
            ORDER BY start_time DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        operations = []
        for row in rows:
            tag_cursor = await conn.execute(
                """
                SELECT name, value
                FROM operation_tags
                WHERE span_id = ?
                ORDER BY position
                """,
                (row[0],),
            )
            tag_rows = await tag_cursor.fetchall()

            operations.append(
                Operation(
                    name=row[3],
                    kind=OperationKind(row[4]),
                    trace_id=row[1],
                    span_id=row[0],
                    parent_span_id=row[2],
                    trace_state=row[5],
                    status=row[6],
                    error=row[7],
                    start_time=_from_db(row[8]),
                    end_time=_from_db(row[9]),
                    tags=[(tag[0], tag[1]) for tag in tag_rows],
                )
            )

        return operations

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
                json.dumps(event.data),
                _to_db(event.timestamp),
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
        """Get trace events with optional filters."""
        conn = self._require_conn()

        conditions = []
        params: list = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_to_db(after))
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
                timestamp=_from_db(row[4]),
            )
            for row in rows
        ]

    # BusMessages
    async def save_bus_message(self, message: BusMessage) -> None:
        """Save a bus message."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO bus_messages (id, topic, payload, source, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                message.id or str(uuid.uuid4()),
                message.topic.value,
                json.dumps(message.payload),
                message.source,
                _to_db(message.timestamp),
            ),
        )
        await conn.commit()

    async def get_bus_messages(self, limit: int = 100) -> list[BusMessage]:
        """Get bus messages (newest first)."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, topic, payload, source, timestamp
            FROM bus_messages
            ORDER BY timestamp DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = await cursor.fetchall()

        return [
            BusMessage(
                id=row[0],
                topic=Topic(row[1]),
                payload=json.loads(row[2]),
                source=row[3],
                timestamp=_from_db(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "blob_metadata",
            "blob_notifications",
            "blobs",
            "operation_tags",
            "operations",
            "trace_events",
            "bus_messages",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
