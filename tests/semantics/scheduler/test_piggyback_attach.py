"""
Semantic test: piggyback attaches the report to the outgoing envelope.

Invariant:
attach_pending(envelope) drains pending counts into a single client_report
item enclosed in the given envelope. With nothing pending the envelope is
left untouched.
"""

from __future__ import annotations

import json

from client_reports.adapters.transports import InMemoryTransport
from client_reports.core.counter.outcome_counter import OutcomeCounter
from client_reports.core.envelope.envelope import Envelope, EnvelopeItem
from client_reports.core.scheduler.flush_scheduler import FlushScheduler
from client_reports.core.scheduler.flush_state_machine import IDLE


def _event_envelope() -> Envelope:
    return Envelope(
        headers={"event_id": "9ec79c33ec9942ab8353589fcb2e04dc"},
        items=[EnvelopeItem(headers={"type": "event"}, payload=b'{"message":"hello"}')],
    )


def test_pending_counts_ride_along() -> None:
    transport = InMemoryTransport()
    scheduler = FlushScheduler(OutcomeCounter(), transport)
    scheduler.record("before_send", "error", 2)
    envelope = _event_envelope()

    item = scheduler.attach_pending(envelope)

    assert item is not None
    assert [i.type for i in envelope.items] == ["event", "client_report"]
    assert transport.envelopes == []
    assert item.headers == {"type": "client_report", "length": len(item.payload)}
    assert json.loads(item.payload)["discarded_events"] == [
        {"reason": "before_send", "category": "error", "quantity": 2},
    ]
    assert scheduler.state == IDLE


def test_nothing_pending_leaves_envelope_untouched() -> None:
    scheduler = FlushScheduler(OutcomeCounter(), InMemoryTransport())
    envelope = _event_envelope()

    assert scheduler.attach_pending(envelope) is None
    assert len(envelope.items) == 1


def test_standalone_flush_goes_to_transport() -> None:
    transport = InMemoryTransport()
    scheduler = FlushScheduler(OutcomeCounter(), transport)
    scheduler.record("queue_overflow", "error")

    scheduler.flush()

    assert len(transport.envelopes) == 1
    assert transport.envelopes[0].items[0].is_client_report
