"""HTTP webhook contract for event delivery.

Before delivering events the event service probes the endpoint with an
OPTIONS request; it must be answered with 200 and a
`Webhook-Allowed-Origin` header naming the trusted origin. Payloads arrive
as CloudEvents 1.0, either a single JSON object or a batch array.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from ..logging_config import get_logger
from ..models import BlobEvent, EventSource, UploadEventRecord

logger = get_logger(__name__)

ALLOWED_ORIGIN_HEADER = "Webhook-Allowed-Origin"
ALLOWED_ORIGIN = "eventgrid.azure.net"


@dataclass
class PreflightResponse:
    """Response the transport must send for a preflight probe."""

    status_code: int = 200
    headers: dict[str, str] = field(
        default_factory=lambda: {ALLOWED_ORIGIN_HEADER: ALLOWED_ORIGIN}
    )
    body: bytes = b""


def preflight(method: str) -> PreflightResponse | None:
    """
    Hook the transport calls before any payload parsing.

    Returns the response to send for a preflight probe, or None when the
    request carries events and should be parsed.
    """
    if method.upper() == "OPTIONS":
        return PreflightResponse()
    return None


class UploadDataModel(BaseModel):
    """`data` of an upload event; missing or null fields fall back to defaults."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    api: str | None = None
    content_type: str | None = Field(None, alias="contentType")
    content_length: int | None = Field(None, alias="contentLength")
    blob_type: str | None = Field(None, alias="blobType")
    url: str | None = None
    client_request_id: str | None = Field(None, alias="clientRequestId")
    request_id: str | None = Field(None, alias="requestId")

    def to_record(self) -> UploadEventRecord:
        return UploadEventRecord(
            api=self.api or "",
            content_type=self.content_type or "",
            content_length=self.content_length or 0,
            blob_type=self.blob_type or "",
            url=self.url or "",
            client_request_id=self.client_request_id or "",
            request_id=self.request_id or "",
        )


class CloudEventModel(BaseModel):
    """CloudEvents 1.0 structured-mode event."""

    model_config = ConfigDict(extra="allow")

    specversion: str
    id: str
    source: str
    type: str
    subject: str
    time: datetime | None = None
    datacontenttype: str | None = None
    data: UploadDataModel | None = None
    traceparent: str | None = None
    tracestate: str | None = None

    @field_validator("traceparent", "tracestate", mode="before")
    @classmethod
    def _drop_non_string_trace_attribute(cls, value: Any, info: ValidationInfo) -> Any:
        # Non-string trace attributes reach the channel as a soft miss
        if value is not None and not isinstance(value, str):
            logger.warning(
                "Ignoring non-string %s attribute of type %s",
                info.field_name,
                type(value).__name__,
            )
            return None
        return value

    def to_blob_event(self) -> BlobEvent:
        return BlobEvent(
            id=self.id,
            event_type=self.type,
            subject=self.subject,
            data=(self.data or UploadDataModel()).to_record(),
            event_time=self.time or datetime.now(timezone.utc),
            source=EventSource.CUSTOM,
            traceparent=self.traceparent,
            tracestate=self.tracestate,
        )


def parse_cloud_events(body: bytes | str) -> list[BlobEvent]:
    """
    Parse a webhook request body.

    Raises:
        ValueError: body is not JSON or not a CloudEvent / CloudEvent batch.
    """
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e.msg}") from e

    items = payload if isinstance(payload, list) else [payload]

    events = []
    for item in items:
        if not isinstance(item, dict):
            raise ValueError("Each event must be a JSON object")
        try:
            events.append(CloudEventModel.model_validate(item).to_blob_event())
        except ValidationError as e:
            raise ValueError(f"Invalid CloudEvent: {e.error_count()} validation error(s)") from e

    return events
