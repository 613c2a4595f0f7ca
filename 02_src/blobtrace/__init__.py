"""Blob Trace: trace-context propagation across blob upload events."""

from .app import Application, IApplication
from .consumer import BlobProcessor, IBlobProcessor, ProcessingResult
from .errors import BlobNotFoundError, BlobTraceError, ChannelWriteFailure, MalformedTraceparent
from .event_bus import EventBus, IEventBus, StorageEventDispatcher
from .models import (
    BlobEvent,
    BlobHandle,
    BusMessage,
    Operation,
    OperationKind,
    StoredBlob,
    TelemetryLink,
    Topic,
    TraceContext,
    TraceEvent,
    Traceparent,
    UploadEventRecord,
)
from .producer import EventPublisher, IUploader, Uploader, UploadResult
from .propagation import ChannelKind, EventAttributeChannel, ITraceChannel, MetadataChannel
from .storage import IObjectStore, IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Errors
    "BlobTraceError",
    "BlobNotFoundError",
    "ChannelWriteFailure",
    "MalformedTraceparent",
    # Models
    "BlobEvent",
    "BlobHandle",
    "BusMessage",
    "Operation",
    "OperationKind",
    "StoredBlob",
    "TelemetryLink",
    "Topic",
    "TraceContext",
    "TraceEvent",
    "Traceparent",
    "UploadEventRecord",
    # Propagation
    "ChannelKind",
    "ITraceChannel",
    "MetadataChannel",
    "EventAttributeChannel",
    # Components
    "IObjectStore",
    "IStorage",
    "Storage",
    "IEventBus",
    "EventBus",
    "StorageEventDispatcher",
    "ITracker",
    "Tracker",
    "EventPublisher",
    "IUploader",
    "Uploader",
    "UploadResult",
    "IBlobProcessor",
    "BlobProcessor",
    "ProcessingResult",
]
