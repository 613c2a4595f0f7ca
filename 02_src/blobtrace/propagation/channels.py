"""Trace channels: where the producer puts the trace context and the consumer finds it."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..errors import ChannelWriteFailure, MalformedTraceparent
from ..logging_config import get_logger, operation_extra
from ..models import BlobEvent, BlobHandle, Operation, TraceContext, UploadEventRecord
from ..models.blobs import DEFAULT_ACCOUNT_URL
from ..storage import IObjectStore
from .context import capture_trace_context
from .metadata import decode_metadata, encode_metadata
from .traceparent import context_from_traceparent

logger = get_logger(__name__)

UPLOAD_EVENT_TYPE = "BlobTrace.BlobUploaded"


class ChannelKind(str, Enum):
    """Configured trace channel."""

    METADATA = "metadata"
    EVENT_ATTRIBUTE = "event_attribute"


def resolve_channel_kind(value: str | None) -> ChannelKind:
    """Resolve TRACE_CHANNEL; defaults to the metadata channel."""
    if not value:
        return ChannelKind.METADATA

    normalized = value.strip().lower().replace("-", "_")
    try:
        return ChannelKind(normalized)
    except ValueError:
        valid = ", ".join(kind.value for kind in ChannelKind)
        raise ValueError(
            f"Unknown trace channel {value!r} (expected one of: {valid})"
        ) from None


@dataclass
class UploadedBlob:
    """What the producer hands to a channel after the upload."""

    handle: BlobHandle
    record: UploadEventRecord


class IEventPublisher(Protocol):
    """Event publisher collaborator.

    Attaches traceparent/tracestate for `operation` to the outgoing event.
    """

    async def publish(
        self, event_type: str, record: UploadEventRecord, operation: Operation, subject: str
    ) -> str:
        """Publish one event; returns the event id."""
        ...


class ITraceChannel(Protocol):
    """Encode/decode pair for one propagation channel."""

    kind: ChannelKind

    async def inject(self, operation: Operation, upload: UploadedBlob) -> None:
        """Write the operation's trace context to the channel.

        Raises:
            ChannelWriteFailure: the collaborator write failed.
        """
        ...

    async def extract(self, event: BlobEvent) -> TraceContext | None:
        """Recover the producer's trace context; None on a soft miss."""
        ...


class MetadataChannel:
    """Trace context as key/value metadata on the uploaded object."""

    kind = ChannelKind.METADATA

    def __init__(self, object_store: IObjectStore):
        self._store = object_store

    async def inject(self, operation: Operation, upload: UploadedBlob) -> None:
        envelope = encode_metadata(capture_trace_context(operation))
        try:
            await self._store.set_metadata(upload.handle, envelope)
        except Exception as e:
            raise ChannelWriteFailure(self.kind.value, str(e)) from e

    async def extract(self, event: BlobEvent) -> TraceContext | None:
        try:
            handle = BlobHandle.from_subject(
                event.subject,
                account_url=getattr(self._store, "account_url", DEFAULT_ACCOUNT_URL),
            )
            metadata = await self._store.get_metadata(handle)
        except Exception as e:
            logger.warning(
                "Could not read trace metadata for %s: %s",
                event.subject,
                e,
                extra={"context": {"event_id": event.id}},
            )
            return None

        context = decode_metadata(metadata)
        if context is None:
            logger.info(
                "No trace metadata on %s",
                event.subject,
                extra={"context": {"event_id": event.id}},
            )
        return context


class EventAttributeChannel:
    """Trace context as the traceparent attribute of a self-published event."""

    kind = ChannelKind.EVENT_ATTRIBUTE

    def __init__(self, publisher: IEventPublisher, event_type: str = UPLOAD_EVENT_TYPE):
        self._publisher = publisher
        self._event_type = event_type

    async def inject(self, operation: Operation, upload: UploadedBlob) -> None:
        context = capture_trace_context(operation)
        # Keeps the payload self-describing if the attribute is stripped in transit
        upload.record.client_request_id = context.trace_id
        upload.record.request_id = context.span_id

        try:
            event_id = await self._publisher.publish(
                self._event_type, upload.record, operation, upload.handle.subject
            )
        except Exception as e:
            raise ChannelWriteFailure(self.kind.value, str(e)) from e

        logger.info(
            "Published %s for %s",
            self._event_type,
            upload.handle.subject,
            extra=operation_extra(operation, event_id=event_id),
        )

    async def extract(self, event: BlobEvent) -> TraceContext | None:
        if not event.traceparent:
            logger.info(
                "Event %s has no traceparent attribute",
                event.id,
                extra={"context": {"subject": event.subject}},
            )
            return None

        try:
            return context_from_traceparent(event.traceparent, event.tracestate)
        except MalformedTraceparent as e:
            logger.warning(
                "Ignoring malformed traceparent on event %s: %s",
                event.id,
                e.reason,
                extra={"context": {"subject": event.subject, "traceparent": e.value}},
            )
            return None


def create_channel(
    kind: ChannelKind,
    object_store: IObjectStore,
    publisher: IEventPublisher | None = None,
) -> ITraceChannel:
    """Build the configured channel."""
    if kind == ChannelKind.METADATA:
        return MetadataChannel(object_store)

    if kind == ChannelKind.EVENT_ATTRIBUTE:
        if publisher is None:
            raise ValueError("The event_attribute channel requires an event publisher")
        return EventAttributeChannel(publisher)

    raise ValueError(f"Unknown trace channel: {kind}")
