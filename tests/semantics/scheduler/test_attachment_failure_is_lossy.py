"""
Semantic test: failed handoff loses the drained counts.

Invariant:
If the transport refuses or raises, the scheduler logs an attachment
failure, does not restore the counts, does not retry, returns to IDLE and
never raises to the caller.
"""

from __future__ import annotations

import logging

import pytest

from client_reports.core.counter.outcome_counter import OutcomeCounter
from client_reports.core.events.event_bus import EventBus
from client_reports.core.events.events import AttachmentFailedEvent
from client_reports.core.scheduler.flush_scheduler import FlushScheduler
from client_reports.core.scheduler.flush_state_machine import IDLE


class RefusingTransport:
    def __init__(self) -> None:
        self.calls = 0

    def send_item(self, item, envelope=None):
        self.calls += 1
        return False


class BrokenTransport:
    def __init__(self) -> None:
        self.calls = 0

    def send_item(self, item, envelope=None):
        self.calls += 1
        raise ConnectionError("transport unavailable")


class CollectingSink:
    def __init__(self) -> None:
        self.events = []

    def on_event(self, event) -> None:
        self.events.append(event)


@pytest.mark.parametrize("transport_cls", [RefusingTransport, BrokenTransport])
def test_failed_handoff_drops_counts(transport_cls, caplog) -> None:
    transport = transport_cls()
    counter = OutcomeCounter()
    sink = CollectingSink()
    scheduler = FlushScheduler(counter, transport, event_bus=EventBus([sink]))
    scheduler.record("queue_overflow", "error", 23)
    scheduler.record("queue_overflow", "transaction", 1321)

    with caplog.at_level(logging.WARNING):
        assert scheduler.flush() is None

    assert transport.calls == 1
    assert counter.is_empty
    assert scheduler.state == IDLE

    failures = [e for e in sink.events if isinstance(e, AttachmentFailedEvent)]
    assert len(failures) == 1
    assert failures[0].lost_quantity == 1344
    assert "Client report attachment failed" in caplog.text

    # Nothing left to retry.
    assert scheduler.flush() is None
    assert transport.calls == 1


def test_failure_error_names_exception() -> None:
    sink = CollectingSink()
    scheduler = FlushScheduler(OutcomeCounter(), BrokenTransport(), event_bus=EventBus([sink]))
    scheduler.record("network_error", "error")

    scheduler.flush()

    failure = next(e for e in sink.events if isinstance(e, AttachmentFailedEvent))
    assert "ConnectionError" in failure.error
