"""
Domain event models.

These events represent immutable facts observed while flushing client
reports. They are consumed by loggers, recorders, and metrics sinks.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class FlushStateTransitionEvent:
    ts: str
    prev_state: str
    next_state: str
    trigger: str | None


@dataclass(slots=True)
class ClientReportFlushedEvent:
    ts: str
    trigger: str
    role: str

    outcomes_total: int
    item_length: int

    # list name -> summed quantity
    quantities: dict[str, int]


@dataclass(slots=True)
class FlushSkippedEvent:
    ts: str
    trigger: str

    reason: str  # empty | in_flight


@dataclass(slots=True)
class AttachmentFailedEvent:
    ts: str
    trigger: str

    error: str
    lost_quantity: int
