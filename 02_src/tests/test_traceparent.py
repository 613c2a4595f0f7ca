"""Tests for traceparent formatting and parsing."""

import pytest

from blobtrace.errors import MalformedTraceparent
from blobtrace.models import TraceContext, Traceparent
from blobtrace.propagation import (
    TRACEPARENT_LENGTH,
    context_from_traceparent,
    format_traceparent,
    parse_traceparent,
)

from conftest import SPAN_ID, TRACE_ID, TRACEPARENT


class TestFormatTraceparent:
    """Tests for format_traceparent()."""

    def test_format_default_version_and_flags(self):
        """Test the sampled, version 00 form."""
        value = format_traceparent(TraceContext(trace_id=TRACE_ID, span_id=SPAN_ID))
        assert value == "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
        assert len(value) == TRACEPARENT_LENGTH

    def test_format_custom_flags(self):
        """Test unsampled flags."""
        value = format_traceparent(
            TraceContext(trace_id=TRACE_ID, span_id=SPAN_ID), flags="00"
        )
        assert value.endswith("-00")


class TestParseTraceparent:
    """Tests for parse_traceparent() on valid input."""

    def test_parse_known_value(self):
        """Test decoding the W3C example."""
        parsed = parse_traceparent(TRACEPARENT)
        assert parsed == Traceparent(
            version="00", trace_id=TRACE_ID, span_id=SPAN_ID, flags="01"
        )
        assert parsed.sampled is True

    @pytest.mark.parametrize(
        "trace_id,span_id",
        [
            ("0af7651916cd43dd8448eb211c80319c", "b7ad6b7169203331"),
            ("ffffffffffffffffffffffffffffffff", "0000000000000001"),
            ("ABCDEF0123456789abcdef0123456789", "ABCDEF0123456789"),
        ],
    )
    def test_parse_returns_original_substrings(self, trace_id, span_id):
        """Test that extracted ids equal the ids used to build the string."""
        value = format_traceparent(TraceContext(trace_id=trace_id, span_id=span_id))
        parsed = parse_traceparent(value)
        assert parsed.trace_id == trace_id
        assert parsed.span_id == span_id

    def test_unsampled_flags(self):
        """Test that the sampled bit is read from flags."""
        parsed = parse_traceparent(f"00-{TRACE_ID}-{SPAN_ID}-00")
        assert parsed.sampled is False

    def test_future_version_accepted(self):
        """Test that version is parsed but not interpreted."""
        parsed = parse_traceparent(f"cc-{TRACE_ID}-{SPAN_ID}-01")
        assert parsed.version == "cc"

    def test_context_from_traceparent_with_state(self):
        """Test pairing with a tracestate value."""
        context = context_from_traceparent(TRACEPARENT, "congo=t61rcWkgMzE")
        assert context == TraceContext(
            trace_id=TRACE_ID, span_id=SPAN_ID, trace_state="congo=t61rcWkgMzE"
        )

    def test_context_from_traceparent_without_state(self):
        """Test that a missing tracestate becomes an empty string."""
        assert context_from_traceparent(TRACEPARENT).trace_state == ""


class TestParseMalformedTraceparent:
    """Tests for parse_traceparent() rejecting malformed input."""

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "00",
            TRACEPARENT[:-1],
            TRACEPARENT + "0",
            TRACEPARENT + "-extra",
            f"00-{TRACE_ID[:-2]}-{SPAN_ID}-01",
        ],
    )
    def test_wrong_length(self, value):
        """Test that any length other than 55 is rejected."""
        with pytest.raises(MalformedTraceparent) as exc_info:
            parse_traceparent(value)
        assert "characters" in exc_info.value.reason

    @pytest.mark.parametrize("position", [2, 35, 52])
    def test_missing_separator(self, position):
        """Test that each separator position is checked."""
        value = TRACEPARENT[:position] + "x" + TRACEPARENT[position + 1 :]
        assert len(value) == TRACEPARENT_LENGTH

        with pytest.raises(MalformedTraceparent) as exc_info:
            parse_traceparent(value)
        assert str(position) in exc_info.value.reason

    @pytest.mark.parametrize(
        "value,field",
        [
            (f"00-{'g' + TRACE_ID[1:]}-{SPAN_ID}-01", "trace-id"),
            (f"00-{TRACE_ID}-{SPAN_ID[:-1] + 'z'}-01", "parent-id"),
            (f"0x-{TRACE_ID}-{SPAN_ID}-01", "version"),
            (f"00-{TRACE_ID}-{SPAN_ID}-0 ", "flags"),
            (f"00-{TRACE_ID[:16]}-{TRACE_ID[17:]}-{SPAN_ID}-01", "trace-id"),
        ],
    )
    def test_non_hex_field(self, value, field):
        """Test that non-hex characters inside a field are rejected."""
        with pytest.raises(MalformedTraceparent) as exc_info:
            parse_traceparent(value)
        assert field in exc_info.value.reason

    def test_non_string(self):
        """Test that non-string input is rejected."""
        with pytest.raises(MalformedTraceparent):
            parse_traceparent(None)

    def test_malformed_is_value_error(self):
        """Test that callers can catch it as ValueError."""
        with pytest.raises(ValueError):
            parse_traceparent("garbage")
