"""Consumer module."""

from .processor import BlobProcessor, IBlobProcessor, ProcessingResult
from .webhook import (
    ALLOWED_ORIGIN,
    ALLOWED_ORIGIN_HEADER,
    CloudEventModel,
    PreflightResponse,
    parse_cloud_events,
    preflight,
)

__all__ = [
    "ALLOWED_ORIGIN",
    "ALLOWED_ORIGIN_HEADER",
    "BlobProcessor",
    "CloudEventModel",
    "IBlobProcessor",
    "PreflightResponse",
    "ProcessingResult",
    "parse_cloud_events",
    "preflight",
]
