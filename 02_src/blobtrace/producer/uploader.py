"""Uploader: the producer side of trace propagation."""

from dataclasses import dataclass
from typing import Protocol

from ..logging_config import get_logger, operation_extra
from ..models import BlobHandle, OperationKind, TraceContext, UploadEventRecord
from ..propagation import ChannelKind, ITraceChannel, UploadedBlob, capture_trace_context
from ..storage import IObjectStore
from ..tracker import ITracker

logger = get_logger(__name__)


@dataclass
class UploadResult:
    """Outcome of a producer operation."""

    handle: BlobHandle
    trace_context: TraceContext
    channel: ChannelKind


class IUploader(Protocol):
    """Upload a blob and propagate the trace context through a channel."""

    async def upload(
        self,
        name: str,
        content: bytes,
        content_type: str,
        parent: TraceContext | None = None,
    ) -> UploadResult:
        ...


class Uploader:
    """Runs one producer operation per upload."""

    def __init__(
        self,
        object_store: IObjectStore,
        channel: ITraceChannel,
        tracker: ITracker,
        container: str,
    ):
        self._store = object_store
        self._channel = channel
        self._tracker = tracker
        self._container = container

    async def upload(
        self,
        name: str,
        content: bytes,
        content_type: str,
        parent: TraceContext | None = None,
    ) -> UploadResult:
        """
        Upload `content`, then write the trace context to the channel.

        Args:
            name: Blob name inside the configured container.
            content: Blob bytes.
            content_type: MIME type stored with the blob.
            parent: Incoming trace context to continue, if any.

        Raises:
            ChannelWriteFailure: the channel write failed (the blob stays uploaded).
            Exception: upload failures propagate unchanged.
        """
        operation = self._tracker.start_operation(
            "upload_blob", OperationKind.PRODUCER, parent=parent
        )
        operation.add_tag("blob.container", self._container)
        operation.add_tag("blob.name", name)
        operation.add_tag("trace.channel", self._channel.kind.value)

        try:
            handle = await self._store.upload(self._container, name, content, content_type)
            record = UploadEventRecord(
                api="PutBlob",
                content_type=content_type,
                content_length=len(content),
                blob_type="BlockBlob",
                url=handle.url,
            )
            await self._channel.inject(operation, UploadedBlob(handle=handle, record=record))
        except Exception as e:
            logger.error(
                "Upload of %s failed: %s",
                name,
                e,
                extra=operation_extra(operation),
            )
            await self._tracker.finish_operation(operation, error=e)
            raise

        await self._tracker.finish_operation(operation)
        logger.info(
            "Uploaded %s via %s channel",
            handle.subject,
            self._channel.kind.value,
            extra=operation_extra(operation, content_length=len(content)),
        )

        return UploadResult(
            handle=handle,
            trace_context=capture_trace_context(operation),
            channel=self._channel.kind,
        )
