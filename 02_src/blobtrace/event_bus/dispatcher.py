"""Delivery of storage-generated BlobCreated events.

Uploads write a pending notification in the same transaction as the blob.
The dispatcher polls those notifications and publishes BlobCreated events on
the EventBus. Events generated here never carry trace attributes, and their
request ids are random: they are not correlated with the producer's trace.
"""

import asyncio
import uuid
from datetime import datetime, timezone

from ..errors import BlobNotFoundError
from ..logging_config import get_logger
from ..models import (
    BlobEvent,
    BlobHandle,
    BlobNotification,
    BusMessage,
    EventSource,
    Topic,
    UploadEventRecord,
)
from ..models.blobs import DEFAULT_ACCOUNT_URL
from ..storage import IStorage
from .event_bus import IEventBus

logger = get_logger(__name__)


class StorageEventDispatcher:
    """Polls pending blob notifications and publishes them to the EventBus."""

    def __init__(
        self,
        storage: IStorage,
        event_bus: IEventBus,
        poll_interval: float = 1.0,
        batch_size: int = 100,
    ):
        self._storage = storage
        self._event_bus = event_bus
        self._poll_interval = poll_interval
        self._batch_size = batch_size
        self._task: asyncio.Task | None = None
        self._shutdown = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the polling loop."""
        if self.running:
            logger.warning("Storage event dispatcher is already running")
            return

        self._shutdown.clear()
        self._task = asyncio.create_task(self._run())
        logger.info("Storage event dispatcher started")

    async def stop(self) -> None:
        """Stop the polling loop."""
        if not self._task:
            return

        self._shutdown.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Storage event dispatcher stopped")

    async def _run(self) -> None:
        while not self._shutdown.is_set():
            try:
                await asyncio.sleep(self._poll_interval)
                await self.dispatch_pending()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("Storage event dispatch failed: %s", e, exc_info=True)

    async def dispatch_pending(self) -> int:
        """Publish all pending notifications. Returns how many were delivered."""
        notifications = await self._storage.get_pending_notifications(self._batch_size)

        delivered = 0
        for notification in notifications:
            try:
                event = await self._build_event(notification)
            except BlobNotFoundError:
                # Blob was deleted or replaced before delivery
                logger.warning(
                    "Dropping notification %s: blob %s/%s is gone",
                    notification.id,
                    notification.container,
                    notification.blob_name,
                )
            else:
                await self._event_bus.publish(
                    BusMessage(
                        id=event.id,
                        topic=Topic.BLOB_CREATED,
                        payload=event.to_dict(),
                        source="storage",
                        timestamp=event.event_time,
                    )
                )
                delivered += 1

            await self._storage.mark_notification_delivered(notification.id)

        return delivered

    async def _build_event(self, notification: BlobNotification) -> BlobEvent:
        handle = BlobHandle(
            container=notification.container,
            name=notification.blob_name,
            account_url=getattr(self._storage, "account_url", DEFAULT_ACCOUNT_URL),
        )
        blob = await self._storage.download(handle)

        record = UploadEventRecord.for_blob(blob, api=notification.api)
        record.client_request_id = str(uuid.uuid4())
        record.request_id = str(uuid.uuid4())

        return BlobEvent(
            id=str(uuid.uuid4()),
            event_type=Topic.BLOB_CREATED.value,
            subject=handle.subject,
            data=record,
            event_time=datetime.now(timezone.utc),
            source=EventSource.STORAGE,
        )
