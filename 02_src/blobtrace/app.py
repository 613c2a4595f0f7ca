"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

import httpx

from .config import (
    DEFAULT_CONTAINER,
    DEFAULT_EVENT_ENDPOINT,
    DEFAULT_EVENT_SOURCE,
    resolve_db_path,
    resolve_dispatch_interval,
)
from .consumer import BlobProcessor, IBlobProcessor
from .event_bus import EventBus, StorageEventDispatcher
from .logging_config import get_logger
from .models import Topic
from .models.blobs import DEFAULT_ACCOUNT_URL
from .producer import EventPublisher, IUploader, Uploader
from .propagation import ChannelKind, ITraceChannel, create_channel, resolve_channel_kind
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap.

    Arguments override the matching environment variables.
    """

    def __init__(
        self,
        db_path: str | None = None,
        channel: str | ChannelKind | None = None,
        container: str | None = None,
        account_url: str | None = None,
        event_endpoint: str | None = None,
        event_source: str | None = None,
        dispatch_interval: float | None = None,
        run_dispatcher: bool = True,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._channel_kind = resolve_channel_kind(
            channel if channel is not None else os.getenv("TRACE_CHANNEL")
        )
        self._container = container or os.getenv("BLOB_CONTAINER", DEFAULT_CONTAINER)
        self._account_url = account_url or os.getenv(
            "STORAGE_ACCOUNT_URL", DEFAULT_ACCOUNT_URL
        )
        self._event_endpoint = event_endpoint or os.getenv(
            "EVENT_ENDPOINT", DEFAULT_EVENT_ENDPOINT
        )
        self._event_source = event_source or os.getenv("EVENT_SOURCE", DEFAULT_EVENT_SOURCE)
        self._dispatch_interval = resolve_dispatch_interval(
            dispatch_interval
            if dispatch_interval is not None
            else os.getenv("DISPATCH_INTERVAL_SECONDS")
        )
        self._run_dispatcher = run_dispatcher
        self._event_client: httpx.AsyncClient | None = None

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._event_bus: EventBus | None = None
        self._tracker: ITracker | None = None
        self._publisher: EventPublisher | None = None
        self._channel: ITraceChannel | None = None
        self._uploader: IUploader | None = None
        self._processor: BlobProcessor | None = None
        self._dispatcher: StorageEventDispatcher | None = None

    def set_event_client(self, client: httpx.AsyncClient) -> None:
        """Use `client` for event publishing instead of creating one."""
        self._event_client = client

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application (%s channel)", self._channel_kind.value)

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path, account_url=self._account_url)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. EventBus (depends on Storage for persistence)
        self._event_bus = EventBus(self._storage)

        # 3. Tracker (depends on EventBus + Storage)
        self._tracker = Tracker(self._event_bus, self._storage)
        await self._tracker.start()

        # 4. EventPublisher (only the event-attribute channel publishes)
        if self._channel_kind == ChannelKind.EVENT_ATTRIBUTE:
            self._publisher = EventPublisher(
                endpoint=self._event_endpoint,
                source=self._event_source,
                client=self._event_client,
            )
            await self._publisher.start()
            logger.info("EventPublisher targeting %s", self._event_endpoint)

        # 5. Channel + producer/consumer
        self._channel = create_channel(self._channel_kind, self._storage, self._publisher)
        self._uploader = Uploader(
            object_store=self._storage,
            channel=self._channel,
            tracker=self._tracker,
            container=self._container,
        )
        self._processor = BlobProcessor(
            object_store=self._storage,
            channel=self._channel,
            tracker=self._tracker,
        )
        if self._channel_kind == ChannelKind.METADATA:
            self._event_bus.subscribe(Topic.BLOB_CREATED, self._processor.handle_bus_message)

        # 6. Storage event delivery (depends on Storage + EventBus)
        self._dispatcher = StorageEventDispatcher(
            self._storage,
            self._event_bus,
            poll_interval=self._dispatch_interval,
        )
        if self._run_dispatcher:
            await self._dispatcher.start()

        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._dispatcher:
            await self._dispatcher.stop()
        if self._publisher:
            await self._publisher.stop()
        if self._tracker:
            await self._tracker.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._dispatcher:
            await self._dispatcher.stop()

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        if self._dispatcher and self._run_dispatcher:
            await self._dispatcher.start()
        logger.info("Reset complete")

    @property
    def channel_kind(self) -> ChannelKind:
        return self._channel_kind

    @property
    def container(self) -> str:
        return self._container

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def uploader(self) -> IUploader:
        """Get uploader instance."""
        if not self._uploader:
            raise RuntimeError("Application not started")
        return self._uploader

    @property
    def processor(self) -> IBlobProcessor:
        """Get blob processor instance."""
        if not self._processor:
            raise RuntimeError("Application not started")
        return self._processor

    @property
    def dispatcher(self) -> StorageEventDispatcher:
        """Get storage event dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher
