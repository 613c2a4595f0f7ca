"""Trace-context propagation across the upload/processing boundary."""

from .channels import (
    UPLOAD_EVENT_TYPE,
    ChannelKind,
    EventAttributeChannel,
    IEventPublisher,
    ITraceChannel,
    MetadataChannel,
    UploadedBlob,
    create_channel,
    resolve_channel_kind,
)
from .context import IAmbientTelemetry, capture_trace_context
from .links import LINKS_TAG, attach_link, build_link, serialize_links
from .metadata import (
    SPAN_ID_KEY,
    TRACE_ID_KEY,
    TRACE_STATE_KEY,
    decode_metadata,
    encode_metadata,
)
from .traceparent import (
    TRACEPARENT_ATTRIBUTE,
    TRACEPARENT_LENGTH,
    TRACESTATE_ATTRIBUTE,
    context_from_traceparent,
    format_traceparent,
    parse_traceparent,
)

__all__ = [
    # Channels
    "ChannelKind",
    "EventAttributeChannel",
    "IEventPublisher",
    "ITraceChannel",
    "MetadataChannel",
    "UPLOAD_EVENT_TYPE",
    "UploadedBlob",
    "create_channel",
    "resolve_channel_kind",
    # Capture
    "IAmbientTelemetry",
    "capture_trace_context",
    # Links
    "LINKS_TAG",
    "attach_link",
    "build_link",
    "serialize_links",
    # Metadata envelope
    "SPAN_ID_KEY",
    "TRACE_ID_KEY",
    "TRACE_STATE_KEY",
    "decode_metadata",
    "encode_metadata",
    # traceparent
    "TRACEPARENT_ATTRIBUTE",
    "TRACEPARENT_LENGTH",
    "TRACESTATE_ATTRIBUTE",
    "context_from_traceparent",
    "format_traceparent",
    "parse_traceparent",
]
