"""
Simple synchronous event bus.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from client_reports.core.events.event_sink import EventSink

LOGGER = logging.getLogger(__name__)


class EventBus:
    """Dispatches events to registered sinks.

    A failing sink is logged and skipped: client report bookkeeping must
    never fail the host's event pipeline.
    """

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._sinks: list[EventSink] = list(sinks) if sinks is not None else []
        self._closed = False

    def register(self, sink: EventSink) -> None:
        """Register a new sink."""
        self._sinks.append(sink)

    def emit(self, event: Any) -> None:
        """Emit an event to all sinks."""
        for sink in self._sinks:
            try:
                sink.on_event(event)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception(
                    "Event sink failed",
                    extra={"sink": type(sink).__name__, "event_type": type(event).__name__},
                )

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method.
        """
        if self._closed:
            return

        for sink in self._sinks:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True


class NullEventBus(EventBus):
    """Bus with no sinks. The scheduler falls back to it when nothing is wired."""

    def __init__(self) -> None:
        super().__init__(sinks=())

    def register(self, sink: EventSink) -> None:
        LOGGER.debug("Sink ignored by NullEventBus", extra={"sink": type(sink).__name__})

    def emit(self, event: Any) -> None:
        return
