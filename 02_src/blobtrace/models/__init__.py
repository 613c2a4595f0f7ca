"""Core data models for Blob Trace."""

from .blobs import BlobHandle, StoredBlob, UploadEventRecord
from .events import BlobEvent, BlobNotification, BusMessage, EventSource, Topic
from .tracing import (
    Operation,
    OperationKind,
    TelemetryLink,
    TraceContext,
    TraceEvent,
    Traceparent,
)

__all__ = [
    # Blobs
    "BlobHandle",
    "StoredBlob",
    "UploadEventRecord",
    # Events
    "BlobEvent",
    "BlobNotification",
    "BusMessage",
    "EventSource",
    "Topic",
    # Tracing
    "Operation",
    "OperationKind",
    "TelemetryLink",
    "TraceContext",
    "TraceEvent",
    "Traceparent",
]
