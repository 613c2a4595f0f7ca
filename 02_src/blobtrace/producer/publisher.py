"""CloudEvents publisher with trace-context instrumentation."""

import uuid
from datetime import datetime, timezone

import httpx

from ..logging_config import get_logger, operation_extra
from ..models import Operation, UploadEventRecord
from ..propagation import (
    TRACEPARENT_ATTRIBUTE,
    TRACESTATE_ATTRIBUTE,
    capture_trace_context,
    format_traceparent,
)

logger = get_logger(__name__)

CLOUDEVENTS_BATCH_CONTENT_TYPE = "application/cloudevents-batch+json; charset=utf-8"


class EventPublisher:
    """Publishes CloudEvents 1.0 to an HTTP endpoint.

    The publish call is instrumented: the active operation's trace context is
    attached as the `traceparent` (and, when non-empty, `tracestate`)
    extension attribute of the outgoing event.
    """

    def __init__(
        self,
        endpoint: str,
        source: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._endpoint = endpoint
        self._source = source
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout

    async def start(self) -> None:
        """Open the HTTP client unless one was injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True

    async def stop(self) -> None:
        """Close the HTTP client if this publisher created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_event(
        self,
        event_type: str,
        record: UploadEventRecord,
        operation: Operation,
        subject: str,
    ) -> dict:
        """Build the CloudEvent, including trace extension attributes."""
        context = capture_trace_context(operation)

        event = {
            "specversion": "1.0",
            "id": str(uuid.uuid4()),
            "source": self._source,
            "type": event_type,
            "subject": subject,
            "time": datetime.now(timezone.utc).isoformat(),
            "datacontenttype": "application/json",
            "data": record.to_dict(),
            TRACEPARENT_ATTRIBUTE: format_traceparent(context),
        }
        if context.trace_state:
            event[TRACESTATE_ATTRIBUTE] = context.trace_state
        return event

    async def publish(
        self,
        event_type: str,
        record: UploadEventRecord,
        operation: Operation,
        subject: str,
    ) -> str:
        """Publish one event; returns the event id.

        Raises:
            RuntimeError: publisher not started.
            httpx.HTTPError: transport failure or non-2xx response.
        """
        if self._client is None:
            raise RuntimeError("EventPublisher not started")

        event = self.build_event(event_type, record, operation, subject)
        response = await self._client.post(
            self._endpoint,
            json=[event],
            headers={"Content-Type": CLOUDEVENTS_BATCH_CONTENT_TYPE},
        )
        response.raise_for_status()

        logger.debug(
            "Event %s delivered to %s (%s)",
            event["id"],
            self._endpoint,
            response.status_code,
            extra=operation_extra(operation),
        )
        return event["id"]
