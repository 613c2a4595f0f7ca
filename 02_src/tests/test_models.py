"""Tests for data models."""

from datetime import datetime, timedelta, timezone

import pytest

from blobtrace.models import (
    BlobEvent,
    BlobHandle,
    EventSource,
    Operation,
    OperationKind,
    TelemetryLink,
    Topic,
    Traceparent,
    UploadEventRecord,
)

from conftest import SPAN_ID, TRACE_ID


class TestBlobHandle:
    """Tests for BlobHandle."""

    def test_url_and_subject(self):
        """Test derived url and event subject."""
        handle = BlobHandle("uploads", "docs/report.txt", account_url="https://acct.blob/")

        assert handle.url == "https://acct.blob/uploads/docs/report.txt"
        assert handle.subject == "/blobServices/default/containers/uploads/blobs/docs/report.txt"

    def test_from_subject(self):
        """Test parsing a subject back into a handle."""
        handle = BlobHandle.from_subject(
            "/blobServices/default/containers/uploads/blobs/docs/report.txt"
        )

        assert handle.container == "uploads"
        assert handle.name == "docs/report.txt"

    @pytest.mark.parametrize(
        "subject",
        [
            "",
            "/containers/uploads/blobs/x",
            "/blobServices/default/containers/uploads",
            "/blobServices/default/containers//blobs/x",
            "/blobServices/default/containers/uploads/blobs/",
        ],
    )
    def test_from_subject_rejects_other_subjects(self, subject):
        """Test that non-blob subjects raise ValueError."""
        with pytest.raises(ValueError):
            BlobHandle.from_subject(subject)


class TestUploadEventRecord:
    """Tests for UploadEventRecord."""

    def test_wire_names(self):
        """Test that the payload uses the storage event field names."""
        record = UploadEventRecord(
            api="PutBlob",
            content_type="text/plain",
            content_length=11,
            blob_type="BlockBlob",
            url="https://acct.blob/uploads/a.txt",
            client_request_id=TRACE_ID,
            request_id=SPAN_ID,
        )

        assert record.to_dict() == {
            "api": "PutBlob",
            "contentType": "text/plain",
            "contentLength": 11,
            "blobType": "BlockBlob",
            "url": "https://acct.blob/uploads/a.txt",
            "clientRequestId": TRACE_ID,
            "requestId": SPAN_ID,
        }

    def test_from_dict_tolerates_missing_fields(self):
        """Test that partial payloads decode with defaults."""
        record = UploadEventRecord.from_dict({"api": "PutBlob"})

        assert record.api == "PutBlob"
        assert record.content_length == 0
        assert record.request_id == ""

    def test_from_dict_treats_null_as_missing(self):
        """Test that null fields decode like absent ones."""
        record = UploadEventRecord.from_dict({"contentLength": None, "url": None})

        assert record.content_length == 0
        assert record.url == ""


class TestBlobEvent:
    """Tests for BlobEvent."""

    def test_dict_round_trip(self):
        """Test BusMessage payload encoding keeps every field."""
        event = BlobEvent(
            id="evt-1",
            event_type=Topic.BLOB_CREATED.value,
            subject="/blobServices/default/containers/uploads/blobs/a.txt",
            data=UploadEventRecord.from_dict({"api": "PutBlob", "contentLength": 3}),
            event_time=datetime(2024, 1, 1, tzinfo=timezone.utc),
            source=EventSource.CUSTOM,
            traceparent=f"00-{TRACE_ID}-{SPAN_ID}-01",
            tracestate="k=v",
        )

        assert BlobEvent.from_dict(event.to_dict()) == event


class TestTracingModels:
    """Tests for tracing models."""

    def test_traceparent_sampled(self):
        """Test the sampled bit of the flags."""
        assert Traceparent("00", TRACE_ID, SPAN_ID, "01").sampled
        assert not Traceparent("00", TRACE_ID, SPAN_ID, "00").sampled

    def test_traceparent_to_trace_context(self):
        """Test conversion keeps ids and takes the tracestate."""
        ctx = Traceparent("00", TRACE_ID, SPAN_ID, "01").to_trace_context("k=v")

        assert ctx.trace_id == TRACE_ID
        assert ctx.span_id == SPAN_ID
        assert ctx.trace_state == "k=v"

    def test_telemetry_link_wire_keys(self):
        """Test the link keys expected by the tracing backend."""
        link = TelemetryLink(operation_id=TRACE_ID, id=SPAN_ID)
        assert link.to_dict() == {"operation_Id": TRACE_ID, "id": SPAN_ID}

    def test_operation_tags_keep_duplicates(self):
        """Test that tags are append-only."""
        op = Operation(
            name="process_blob",
            kind=OperationKind.CONSUMER,
            trace_id=TRACE_ID,
            span_id=SPAN_ID,
            start_time=datetime.now(timezone.utc),
        )
        op.add_tag("a", "1")
        op.add_tag("a", "2")

        assert op.get_tags("a") == ["1", "2"]
        assert op.get_tags("b") == []

    def test_operation_duration(self):
        """Test duration is only known once the operation ended."""
        start = datetime.now(timezone.utc)
        op = Operation(
            name="upload_blob",
            kind=OperationKind.PRODUCER,
            trace_id=TRACE_ID,
            span_id=SPAN_ID,
            start_time=start,
        )
        assert op.duration_ms is None

        op.end_time = start + timedelta(milliseconds=250)
        assert op.duration_ms == pytest.approx(250)
