"""Event data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .blobs import UploadEventRecord


class Topic(str, Enum):
    """EventBus topics."""

    BLOB_CREATED = "Microsoft.Storage.BlobCreated"


class EventSource(str, Enum):
    """Who produced a BlobEvent."""

    STORAGE = "storage"  # generated by the storage event system
    CUSTOM = "custom"  # self-published by the producer


@dataclass
class BlobEvent:
    """An event about an uploaded blob, as delivered to the consumer."""

    id: str
    event_type: str
    subject: str
    data: UploadEventRecord
    event_time: datetime
    source: EventSource
    traceparent: str | None = None
    tracestate: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "subject": self.subject,
            "data": self.data.to_dict(),
            "event_time": self.event_time.isoformat(),
            "source": self.source.value,
            "traceparent": self.traceparent,
            "tracestate": self.tracestate,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "BlobEvent":
        return cls(
            id=payload["id"],
            event_type=payload["event_type"],
            subject=payload["subject"],
            data=UploadEventRecord.from_dict(payload.get("data") or {}),
            event_time=datetime.fromisoformat(payload["event_time"]),
            source=EventSource(payload.get("source", EventSource.STORAGE.value)),
            traceparent=payload.get("traceparent"),
            tracestate=payload.get("tracestate"),
        )


@dataclass
class BusMessage:
    """A message exchanged through EventBus."""

    id: str
    topic: Topic
    payload: dict  # BlobEvent.to_dict()
    source: str  # component that published
    timestamp: datetime


@dataclass
class BlobNotification:
    """Pending storage-event notification written alongside an upload."""

    id: str
    container: str
    blob_name: str
    api: str
    created_at: datetime
