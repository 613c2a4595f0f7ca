"""BlobProcessor: the consumer side of trace propagation."""

import hashlib
from collections import OrderedDict
from dataclasses import dataclass
from typing import Protocol

from ..logging_config import get_logger, operation_extra
from ..models import BlobEvent, BlobHandle, BusMessage, OperationKind
from ..models.blobs import DEFAULT_ACCOUNT_URL
from ..propagation import ITraceChannel, attach_link
from ..storage import IObjectStore
from ..tracker import ITracker

logger = get_logger(__name__)

# Completed event ids remembered for redelivered batches
COMPLETED_EVENT_CACHE_SIZE = 1024


@dataclass
class ProcessingResult:
    """Outcome of a consumer operation."""

    handle: BlobHandle
    size: int
    sha256: str
    trace_id: str  # consumer operation
    span_id: str
    linked_trace_id: str | None  # producer operation, None when unlinked


class IBlobProcessor(Protocol):
    """Process uploaded blobs, linking to the upload's trace when possible."""

    async def handle_event(self, event: BlobEvent) -> ProcessingResult:
        ...


class BlobProcessor:
    """Runs one consumer operation per delivered event."""

    def __init__(
        self,
        object_store: IObjectStore,
        channel: ITraceChannel,
        tracker: ITracker,
    ):
        self._store = object_store
        self._channel = channel
        self._tracker = tracker
        self._completed: OrderedDict[str, ProcessingResult] = OrderedDict()

    async def handle_bus_message(self, bus_message: BusMessage) -> None:
        """EventBus handler for storage-generated events."""
        await self.handle_event(BlobEvent.from_dict(bus_message.payload))

    async def handle_event(self, event: BlobEvent) -> ProcessingResult:
        """
        Process one event.

        The trace link is best effort: a missing or malformed trace context
        leaves the operation unlinked. Only the blob read can fail the
        operation.

        An event id that already completed returns the earlier result without
        starting a new operation, so a redelivered event is linked once.
        """
        if event.id in self._completed:
            logger.info("Event %s already processed, skipping", event.id)
            return self._completed[event.id]

        operation = self._tracker.start_operation("process_blob", OperationKind.CONSUMER)
        operation.add_tag("event.id", event.id)
        operation.add_tag("event.type", event.event_type)

        try:
            handle = BlobHandle.from_subject(
                event.subject,
                account_url=getattr(self._store, "account_url", DEFAULT_ACCOUNT_URL),
            )
            context = await self._channel.extract(event)
            link = attach_link(operation, context)

            blob = await self._store.download(handle)
            digest = hashlib.sha256(blob.content).hexdigest()
        except Exception as e:
            logger.error(
                "Processing of %s failed: %s",
                event.subject,
                e,
                extra=operation_extra(operation),
            )
            await self._tracker.finish_operation(operation, error=e)
            raise

        await self._tracker.finish_operation(operation)

        linked_trace_id = link.operation_id if link else None
        await self._tracker.track(
            event_type="blob_processed",
            actor="blob_processor",
            data={
                "subject": event.subject,
                "size": blob.content_length,
                "sha256": digest,
                "trace_id": operation.trace_id,
                "span_id": operation.span_id,
                "linked_trace_id": linked_trace_id,
                "linked_span_id": link.id if link else None,
                "channel": self._channel.kind.value,
            },
        )
        logger.info(
            "Processed %s (%s linked)",
            event.subject,
            "trace" if link else "not",
            extra=operation_extra(operation, linked_trace_id=linked_trace_id),
        )

        result = ProcessingResult(
            handle=handle,
            size=blob.content_length,
            sha256=digest,
            trace_id=operation.trace_id,
            span_id=operation.span_id,
            linked_trace_id=linked_trace_id,
        )
        self._completed[event.id] = result
        if len(self._completed) > COMPLETED_EVENT_CACHE_SIZE:
            self._completed.popitem(last=False)
        return result
