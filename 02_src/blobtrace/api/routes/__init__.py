"""API routes."""

from . import blobs, control, events, observability

__all__ = ["blobs", "control", "events", "observability"]
