"""W3C traceparent formatting and strict parsing.

Format: {version:2 hex}-{trace-id:32 hex}-{parent-id:16 hex}-{flags:2 hex}
Example: 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01

See: https://www.w3.org/TR/trace-context/#traceparent-header
"""

import re

from ..errors import MalformedTraceparent
from ..models import TraceContext, Traceparent

TRACEPARENT_ATTRIBUTE = "traceparent"
TRACESTATE_ATTRIBUTE = "tracestate"

DEFAULT_VERSION = "00"
SAMPLED_FLAGS = "01"

# (name, offset, length) of every field
_FIELDS = (
    ("version", 0, 2),
    ("trace-id", 3, 32),
    ("parent-id", 36, 16),
    ("flags", 53, 2),
)
_SEPARATOR_OFFSETS = (2, 35, 52)
TRACEPARENT_LENGTH = 55

_HEX = re.compile(r"[0-9a-fA-F]+")


def format_traceparent(
    context: TraceContext,
    flags: str = SAMPLED_FLAGS,
    version: str = DEFAULT_VERSION,
) -> str:
    """Format a traceparent value for the given context."""
    return f"{version}-{context.trace_id}-{context.span_id}-{flags}"


def parse_traceparent(value: str) -> Traceparent:
    """
    Parse a traceparent value by fixed-offset slicing after validation.

    Args:
        value: Raw attribute/header value.

    Returns:
        Parsed Traceparent. Field values are returned exactly as they appear
        in the input.

    Raises:
        MalformedTraceparent: wrong length, separator out of place, or a
            non-hex character inside a field.
    """
    if not isinstance(value, str):
        raise MalformedTraceparent(repr(value), "not a string")

    if len(value) != TRACEPARENT_LENGTH:
        raise MalformedTraceparent(
            value, f"expected {TRACEPARENT_LENGTH} characters, got {len(value)}"
        )

    for offset in _SEPARATOR_OFFSETS:
        if value[offset] != "-":
            raise MalformedTraceparent(value, f"expected '-' at position {offset}")

    parts = {}
    for name, offset, length in _FIELDS:
        part = value[offset : offset + length]
        if not _HEX.fullmatch(part):
            raise MalformedTraceparent(value, f"{name} is not hexadecimal")
        parts[name] = part

    return Traceparent(
        version=parts["version"],
        trace_id=parts["trace-id"],
        span_id=parts["parent-id"],
        flags=parts["flags"],
    )


def context_from_traceparent(value: str, trace_state: str | None = None) -> TraceContext:
    """Parse a traceparent and pair it with an optional tracestate."""
    return parse_traceparent(value).to_trace_context(trace_state or "")
