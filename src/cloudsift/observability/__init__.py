"""Logging setup and structured event sinks."""

from cloudsift.observability.events import EventSink, RecordingSink, StructlogEventSink

__all__ = ["EventSink", "RecordingSink", "StructlogEventSink"]
