"""Building and attaching the telemetry link tag."""

import json

from ..models import TelemetryLink, TraceContext
from .context import IAmbientTelemetry

LINKS_TAG = "_MS.links"


def build_link(context: TraceContext) -> TelemetryLink:
    """Link pointing at the producer operation."""
    return TelemetryLink(operation_id=context.trace_id, id=context.span_id)


def serialize_links(links: list[TelemetryLink]) -> str:
    """Compact JSON array of link objects."""
    return json.dumps([link.to_dict() for link in links], separators=(",", ":"))


def attach_link(
    operation: IAmbientTelemetry, context: TraceContext | None
) -> TelemetryLink | None:
    """
    Tag the consumer operation with a link to the producer operation.

    No-op when context is None. Each call adds a new tag, so call it once per
    consumer operation.
    """
    if context is None:
        return None

    link = build_link(context)
    operation.add_tag(LINKS_TAG, serialize_links([link]))
    return link
