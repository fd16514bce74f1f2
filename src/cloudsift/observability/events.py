"""Event sinks — Structured event emission for the core components.

The synchronizer, compiler and batcher never log through a global
facility.  They receive an ``EventSink`` and emit named events with
keyword fields; the default sink forwards them to structlog.
"""

from __future__ import annotations

from typing import Any, Protocol

import structlog

WARNING_EVENTS = frozenset(
    {
        "field_delete_failed",
        "field_update_failed",
        "reindex_failed",
        "search_failed",
        "batch_failed",
    }
)


class EventSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None: ...


class StructlogEventSink:
    """Forward events to a structlog logger.

    Failure events are logged at warning level, everything else at info.
    """

    def __init__(self, logger_name: str = "cloudsift", **context: Any) -> None:
        self._log = structlog.get_logger(logger_name).bind(**context)

    def emit(self, event: str, **fields: Any) -> None:
        if event in WARNING_EVENTS:
            self._log.warning(event, **fields)
        else:
            self._log.info(event, **fields)


class RecordingSink:
    """Keep emitted events in memory; useful for tests and dry runs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]
