"""Tracing and observability data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class TraceContext:
    """Read-only copy of a position in a distributed trace."""

    trace_id: str  # 32 hex chars
    span_id: str  # 16 hex chars
    trace_state: str = ""


@dataclass(frozen=True)
class Traceparent:
    """Parsed W3C traceparent value."""

    version: str
    trace_id: str
    span_id: str
    flags: str

    @property
    def sampled(self) -> bool:
        """Whether the sampled bit of the flags is set."""
        return bool(int(self.flags, 16) & 0x01)

    def to_trace_context(self, trace_state: str = "") -> TraceContext:
        """Convert to a TraceContext."""
        return TraceContext(
            trace_id=self.trace_id,
            span_id=self.span_id,
            trace_state=trace_state,
        )


@dataclass(frozen=True)
class TelemetryLink:
    """Causal link from a consumer operation to a producer operation."""

    operation_id: str  # producer trace id
    id: str  # producer span id

    def to_dict(self) -> dict[str, str]:
        """Wire form expected by the tracing backend."""
        return {"operation_Id": self.operation_id, "id": self.id}


class OperationKind(str, Enum):
    """Role of an operation in the propagation flow."""

    SERVER = "server"
    PRODUCER = "producer"
    CONSUMER = "consumer"


@dataclass
class Operation:
    """A unit of telemetry: the explicit stand-in for the "current span"."""

    name: str
    kind: OperationKind
    trace_id: str
    span_id: str
    start_time: datetime
    parent_span_id: str | None = None
    trace_state: str = ""
    tags: list[tuple[str, str]] = field(default_factory=list)
    status: str = "running"  # running, ok, error
    end_time: datetime | None = None
    error: str | None = None

    def current_trace_id(self) -> str:
        return self.trace_id

    def current_span_id(self) -> str:
        return self.span_id

    def current_trace_state(self) -> str:
        return self.trace_state

    def add_tag(self, name: str, value: str) -> None:
        """Append a tag. Duplicates are kept."""
        self.tags.append((name, value))

    def get_tags(self, name: str) -> list[str]:
        """All values recorded under a tag name, in insertion order."""
        return [value for tag, value in self.tags if tag == name]

    @property
    def duration_ms(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000


@dataclass
class TraceEvent:
    """A single diagnostic event recorded by the tracker."""

    id: str
    event_type: str  # e.g. "blob_processed", "bus_message_published"
    actor: str  # who created this event
    data: dict  # full self-contained data for display
    timestamp: datetime
