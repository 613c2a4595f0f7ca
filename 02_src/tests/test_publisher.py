"""Tests for EventPublisher."""

import json

import httpx
import pytest

from blobtrace.models import UploadEventRecord
from blobtrace.producer import EventPublisher
from blobtrace.propagation import UPLOAD_EVENT_TYPE

from conftest import SPAN_ID, TRACE_ID, TRACEPARENT

SUBJECT = "/blobServices/default/containers/uploads/blobs/a.txt"


def _record() -> UploadEventRecord:
    return UploadEventRecord(
        api="PutBlob",
        content_type="text/plain",
        content_length=3,
        blob_type="BlockBlob",
        url="http://127.0.0.1:10000/devstoreaccount1/uploads/a.txt",
        client_request_id=TRACE_ID,
        request_id=SPAN_ID,
    )


class TestBuildEvent:
    """Tests for EventPublisher.build_event()."""

    def test_cloud_event_shape(self, producer_operation):
        """Test the CloudEvents 1.0 envelope."""
        publisher = EventPublisher("http://test/api/events", source="/tests")
        event = publisher.build_event(UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT)

        assert event["specversion"] == "1.0"
        assert event["type"] == UPLOAD_EVENT_TYPE
        assert event["source"] == "/tests"
        assert event["subject"] == SUBJECT
        assert event["data"]["contentLength"] == 3
        assert event["id"]

    def test_traceparent_from_operation(self, producer_operation):
        """Test that the active operation becomes the traceparent attribute."""
        publisher = EventPublisher("http://test/api/events", source="/tests")
        event = publisher.build_event(UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT)

        assert event["traceparent"] == TRACEPARENT
        assert "tracestate" not in event

    def test_tracestate_when_present(self, producer_operation):
        """Test that a non-empty tracestate is attached verbatim."""
        producer_operation.trace_state = "vendor=abc,other=1"
        publisher = EventPublisher("http://test/api/events", source="/tests")
        event = publisher.build_event(UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT)

        assert event["tracestate"] == "vendor=abc,other=1"


class TestPublish:
    """Tests for EventPublisher.publish()."""

    @pytest.mark.asyncio
    async def test_posts_batch(self, producer_operation):
        """Test that the event is posted as a CloudEvents batch."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"processed": 1, "linked": 1})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        publisher = EventPublisher("http://test/api/events", source="/tests", client=client)
        await publisher.start()

        event_id = await publisher.publish(
            UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT
        )

        [request] = requests
        assert request.method == "POST"
        assert request.headers["content-type"].startswith("application/cloudevents-batch+json")
        body = json.loads(request.content)
        assert isinstance(body, list)
        assert body[0]["id"] == event_id
        assert body[0]["traceparent"] == TRACEPARENT

        await publisher.stop()
        # Injected clients belong to the caller
        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_error_response_raises(self, producer_operation):
        """Test that a non-2xx response raises."""
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503))
        )
        publisher = EventPublisher("http://test/api/events", source="/tests", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await publisher.publish(UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT)

        await client.aclose()

    @pytest.mark.asyncio
    async def test_publish_before_start_raises(self, producer_operation):
        """Test that an unstarted publisher refuses to publish."""
        publisher = EventPublisher("http://test/api/events", source="/tests")

        with pytest.raises(RuntimeError, match="not started"):
            await publisher.publish(UPLOAD_EVENT_TYPE, _record(), producer_operation, SUBJECT)

    @pytest.mark.asyncio
    async def test_start_creates_and_stop_closes_client(self):
        """Test that a publisher owns the client it creates."""
        publisher = EventPublisher("http://test/api/events", source="/tests")
        await publisher.start()
        client = publisher._client
        assert client is not None

        await publisher.stop()
        assert client.is_closed
        assert publisher._client is None
