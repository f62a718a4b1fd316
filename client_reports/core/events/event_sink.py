"""
Consumer side of the flush event stream.

Anything with an ``on_event`` method can be registered on an ``EventBus``.
Sinks that hold resources may also expose ``close()``; the bus calls it
once on shutdown.
"""
from __future__ import annotations

from typing import Any, Protocol


class EventSink(Protocol):
    def on_event(self, event: Any) -> None:
        """Receive one flush, skip, transition or attachment-failure event."""
