"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

TRACE_ID = "4bf92f3577b34da6a3ce929d0e0e4736"
SPAN_ID = "00f067aa0ba902b7"
TRACEPARENT = f"00-{TRACE_ID}-{SPAN_ID}-01"


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from blobtrace.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def event_bus(storage):
    """Create EventBus with storage."""
    from blobtrace.event_bus import EventBus

    return EventBus(storage)


@pytest.fixture
def tracker(storage, event_bus):
    """Create Tracker with storage and event bus."""
    from blobtrace.tracker import Tracker

    return Tracker(event_bus=event_bus, storage=storage)


@pytest.fixture
def producer_operation(tracker):
    """A running producer operation with a known trace context."""
    from blobtrace.models import OperationKind, TraceContext

    operation = tracker.start_operation(
        "upload_blob",
        OperationKind.PRODUCER,
        parent=TraceContext(trace_id=TRACE_ID, span_id="1111111111111111"),
    )
    operation.span_id = SPAN_ID
    return operation


@pytest.fixture
def mock_publisher():
    """Event publisher collaborator that records calls."""
    publisher = AsyncMock()
    publisher.publish = AsyncMock(return_value="event-1")
    return publisher


@pytest_asyncio.fixture
async def uploaded_blob(storage):
    """A blob already in storage, without metadata."""
    return await storage.upload("uploads", "docs/report.txt", b"hello world", "text/plain")
