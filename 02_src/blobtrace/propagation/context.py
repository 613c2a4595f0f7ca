"""Capture of the ambient trace context."""

from typing import Protocol

from ..models import TraceContext


class IAmbientTelemetry(Protocol):
    """The slice of the active telemetry operation propagation reads and tags."""

    def current_trace_id(self) -> str:
        ...

    def current_span_id(self) -> str:
        ...

    def current_trace_state(self) -> str:
        ...

    def add_tag(self, name: str, value: str) -> None:
        ...


def capture_trace_context(operation: IAmbientTelemetry) -> TraceContext:
    """Take a read-only copy of the operation's trace context."""
    return TraceContext(
        trace_id=operation.current_trace_id(),
        span_id=operation.current_span_id(),
        trace_state=operation.current_trace_state() or "",
    )
