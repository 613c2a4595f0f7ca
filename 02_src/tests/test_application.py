"""Tests for Application."""

import pytest

from blobtrace.app import Application
from blobtrace.models import Topic
from blobtrace.propagation import ChannelKind, EventAttributeChannel, MetadataChannel


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer .env settings out of the tests."""
    for name in (
        "DATABASE_URL",
        "TRACE_CHANNEL",
        "BLOB_CONTAINER",
        "STORAGE_ACCOUNT_URL",
        "EVENT_ENDPOINT",
        "EVENT_SOURCE",
        "DISPATCH_INTERVAL_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestApplicationConfig:
    """Tests for Application configuration."""

    def test_defaults_to_metadata_channel(self):
        """Test the default channel."""
        app = Application(db_path=":memory:")
        assert app.channel_kind == ChannelKind.METADATA
        assert app.container == "uploads"

    def test_channel_from_env(self, monkeypatch):
        """Test TRACE_CHANNEL selects the channel."""
        monkeypatch.setenv("TRACE_CHANNEL", "event-attribute")
        app = Application(db_path=":memory:")
        assert app.channel_kind == ChannelKind.EVENT_ATTRIBUTE

    def test_argument_overrides_env(self, monkeypatch):
        """Test constructor arguments win over the environment."""
        monkeypatch.setenv("TRACE_CHANNEL", "event_attribute")
        monkeypatch.setenv("BLOB_CONTAINER", "from-env")
        app = Application(db_path=":memory:", channel="metadata", container="docs")
        assert app.channel_kind == ChannelKind.METADATA
        assert app.container == "docs"

    def test_unknown_channel_raises(self):
        """Test that a bad channel fails at construction."""
        with pytest.raises(ValueError, match="Unknown trace channel"):
            Application(db_path=":memory:", channel="carrier-pigeon")

    def test_non_positive_dispatch_interval_raises(self, monkeypatch):
        """Test DISPATCH_INTERVAL_SECONDS validation."""
        monkeypatch.setenv("DISPATCH_INTERVAL_SECONDS", "0")
        with pytest.raises(ValueError):
            Application(db_path=":memory:")

    def test_components_unavailable_before_start(self):
        """Test accessing components before start."""
        app = Application(db_path=":memory:")
        with pytest.raises(RuntimeError, match="Application not started"):
            _ = app.uploader


class TestApplicationStart:
    """Tests for Application.start()."""

    @pytest.mark.asyncio
    async def test_start_initializes_components(self):
        """Test that start initializes all components."""
        app = Application(db_path=":memory:", run_dispatcher=False)
        await app.start()

        assert app._storage is not None
        assert app._event_bus is not None
        assert app._tracker is not None
        assert app._channel is not None
        assert app._uploader is not None
        assert app._processor is not None
        assert app._dispatcher is not None
        assert app._publisher is None

        await app.stop()

    @pytest.mark.asyncio
    async def test_start_wires_dependencies(self):
        """Test that components share the same collaborators."""
        app = Application(db_path=":memory:", run_dispatcher=False)
        await app.start()

        assert app._tracker._event_bus is app._event_bus
        assert app._tracker._storage is app._storage
        assert app._uploader._channel is app._channel
        assert app._processor._channel is app._channel

        await app.stop()

    @pytest.mark.asyncio
    async def test_metadata_channel_subscribes_processor(self):
        """Test that storage events reach the processor under the metadata channel."""
        app = Application(db_path=":memory:", run_dispatcher=False)
        await app.start()

        assert isinstance(app._channel, MetadataChannel)
        handlers = app._event_bus._subscribers[Topic.BLOB_CREATED]
        assert app._processor.handle_bus_message in handlers

        await app.stop()

    @pytest.mark.asyncio
    async def test_event_attribute_channel_uses_webhook(self):
        """Test that the event-attribute channel does not consume storage events."""
        app = Application(
            db_path=":memory:", channel="event_attribute", run_dispatcher=False
        )
        await app.start()

        assert isinstance(app._channel, EventAttributeChannel)
        assert app._publisher is not None
        handlers = app._event_bus._subscribers[Topic.BLOB_CREATED]
        assert app._processor.handle_bus_message not in handlers

        await app.stop()

    @pytest.mark.asyncio
    async def test_start_creates_database_tables(self):
        """Test that start creates database tables."""
        app = Application(db_path=":memory:", run_dispatcher=False)
        await app.start()

        async with app._storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = {row[0] for row in await cursor.fetchall()}

        assert {"blobs", "blob_metadata", "blob_notifications", "operations"} <= tables

        await app.stop()

    @pytest.mark.asyncio
    async def test_dispatcher_runs_by_default(self):
        """Test that the storage event dispatcher starts with the app."""
        app = Application(db_path=":memory:", dispatch_interval=0.05)
        await app.start()

        assert app.dispatcher.running

        await app.stop()
        assert not app.dispatcher.running


class TestApplicationReset:
    """Tests for Application.reset()."""

    @pytest.mark.asyncio
    async def test_reset_clears_data(self):
        """Test that reset clears stored data."""
        app = Application(db_path=":memory:", run_dispatcher=False)
        await app.start()

        await app.uploader.upload("a.txt", b"a", "text/plain")
        assert await app.storage.get_operations()

        await app.reset()

        assert await app.storage.get_operations() == []
        assert await app.storage.get_pending_notifications() == []

        await app.stop()
