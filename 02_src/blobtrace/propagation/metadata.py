"""Object-metadata envelope for the trace context."""

from typing import Mapping

from ..models import TraceContext

TRACE_ID_KEY = "traceid"
SPAN_ID_KEY = "spanid"
TRACE_STATE_KEY = "tracestate"


def encode_metadata(context: TraceContext) -> dict[str, str]:
    """Stringify the context into the three fixed metadata keys."""
    return {
        TRACE_ID_KEY: str(context.trace_id),
        SPAN_ID_KEY: str(context.span_id),
        TRACE_STATE_KEY: str(context.trace_state or ""),
    }


def decode_metadata(metadata: Mapping[str, str] | None) -> TraceContext | None:
    """
    Recover a TraceContext from an object's metadata set.

    Returns None (soft miss) unless both trace and span ids are present.
    Values are passed through without format validation.
    """
    if not metadata:
        return None

    trace_id = metadata.get(TRACE_ID_KEY)
    span_id = metadata.get(SPAN_ID_KEY)
    if trace_id is None or span_id is None:
        return None

    return TraceContext(
        trace_id=trace_id,
        span_id=span_id,
        trace_state=metadata.get(TRACE_STATE_KEY) or "",
    )
