"""Exceptions raised by Blob Trace components."""


class BlobTraceError(Exception):
    """Base class for Blob Trace errors."""


class ChannelWriteFailure(BlobTraceError):
    """Writing the trace context to its channel failed.

    Raised by the producer side; the cause is chained.
    """

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel} channel write failed: {message}")
        self.channel = channel


class MalformedTraceparent(BlobTraceError, ValueError):
    """A traceparent value is present but does not match the W3C grammar."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"Malformed traceparent {value!r}: {reason}")
        self.value = value
        self.reason = reason


class BlobNotFoundError(BlobTraceError, KeyError):
    """The addressed blob does not exist."""

    def __init__(self, container: str, name: str):
        super().__init__(f"Blob not found: {container}/{name}")
        self.container = container
        self.name = name

    def __str__(self) -> str:
        return self.args[0]
