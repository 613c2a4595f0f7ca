"""Tracker module."""

from .tracker import ITracker, Tracker, generate_span_id, generate_trace_id

__all__ = ["ITracker", "Tracker", "generate_span_id", "generate_trace_id"]
