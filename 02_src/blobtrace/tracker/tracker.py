"""Tracker: operation lifecycle and TraceEvents."""

import secrets
import uuid
from datetime import datetime, timezone
from typing import Protocol

from ..event_bus import IEventBus
from ..logging_config import get_logger
from ..models import BusMessage, Operation, OperationKind, TraceContext, TraceEvent, Topic
from ..storage import IStorage

logger = get_logger(__name__)


def generate_trace_id() -> str:
    """W3C 128-bit trace id (32 hex chars)."""
    return secrets.token_hex(16)


def generate_span_id() -> str:
    """W3C 64-bit span id (16 hex chars)."""
    return secrets.token_hex(8)


class ITracker(Protocol):
    """Telemetry: operations (spans) and TraceEvents."""

    def start_operation(
        self,
        name: str,
        kind: OperationKind,
        parent: TraceContext | None = None,
    ) -> Operation:
        """Start an operation, continuing `parent`'s trace when given."""
        ...

    async def finish_operation(
        self, operation: Operation, error: BaseException | None = None
    ) -> None:
        """End an operation and persist it with its tags."""
        ...

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        ...


class Tracker:
    """Creates Operations and TraceEvents; records both to Storage."""

    def __init__(self, event_bus: IEventBus, storage: IStorage):
        self._event_bus = event_bus
        self._storage = storage

    async def start(self) -> None:
        """Subscribe to all EventBus topics."""
        for topic in Topic:
            self._event_bus.subscribe(topic, self._handle_bus_message)

    async def _handle_bus_message(self, bus_message: BusMessage) -> None:
        """Handle incoming BusMessage from EventBus."""
        await self.track(
            event_type="bus_message_published",
            actor="event_bus",
            data={
                "topic": bus_message.topic.value,
                "source": bus_message.source,
                "subject": bus_message.payload.get("subject"),
            },
        )

    def start_operation(
        self,
        name: str,
        kind: OperationKind,
        parent: TraceContext | None = None,
    ) -> Operation:
        """Start an operation, continuing `parent`'s trace when given."""
        operation = Operation(
            name=name,
            kind=kind,
            trace_id=parent.trace_id if parent else generate_trace_id(),
            span_id=generate_span_id(),
            parent_span_id=parent.span_id if parent else None,
            trace_state=parent.trace_state if parent else "",
            start_time=datetime.now(timezone.utc),
        )
        logger.debug(
            "Operation %s started (trace %s, span %s)",
            name,
            operation.trace_id,
            operation.span_id,
        )
        return operation

    async def finish_operation(
        self, operation: Operation, error: BaseException | None = None
    ) -> None:
        """End an operation and persist it with its tags."""
        operation.end_time = datetime.now(timezone.utc)
        if error is not None:
            operation.status = "error"
            operation.error = f"{type(error).__name__}: {error}"
        else:
            operation.status = "ok"

        await self._storage.save_operation(operation)

    async def track(self, event_type: str, actor: str, data: dict) -> None:
        """Create TraceEvent and save to Storage."""
        trace_event = TraceEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            actor=actor,
            data=data,
            timestamp=datetime.now(timezone.utc),
        )
        await self._storage.save_trace_event(trace_event)

    async def stop(self) -> None:
        """Stop tracker (no-op)."""
        return
