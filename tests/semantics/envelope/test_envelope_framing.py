"""
Semantic test: envelope framing.

Invariant:
An envelope serializes as a header line followed by item header and payload
per item. Parsing honours explicit lengths (payloads may contain newlines),
falls back to newline-terminated payloads, and rejects broken framing with
MalformedPayload.
"""

from __future__ import annotations

import json

import pytest

from client_reports.core.domain.errors import MalformedPayload
from client_reports.core.envelope.envelope import Envelope, EnvelopeItem


def test_client_report_item_round_trips_through_envelope() -> None:
    payload = b'{"timestamp":"2020-02-07T14:16:00Z","discarded_events":[]}'
    envelope = Envelope(headers={"sent_at": "2020-02-07T14:16:01Z"})
    envelope.add_item(EnvelopeItem.for_client_report(payload))

    data = envelope.serialize()
    lines = data.split(b"\n")

    assert json.loads(lines[0]) == {"sent_at": "2020-02-07T14:16:01Z"}
    assert json.loads(lines[1]) == {"type": "client_report", "length": len(payload)}
    assert lines[2] == payload

    parsed = Envelope.parse(data)
    assert parsed.headers == envelope.headers
    assert [item.payload for item in parsed.items] == [payload]
    assert parsed.items[0].is_client_report


def test_explicit_length_allows_newlines_in_payload() -> None:
    data = (
        b'{}\n'
        b'{"type":"attachment","length":11}\n'
        b'hello\nworld\n'
        b'{"type":"event"}\n'
        b'{"message":"x"}\n'
    )

    parsed = Envelope.parse(data)

    assert [item.type for item in parsed.items] == ["attachment", "event"]
    assert parsed.items[0].payload == b"hello\nworld"
    assert parsed.items[1].payload == b'{"message":"x"}'


def test_missing_trailing_newline_is_accepted() -> None:
    parsed = Envelope.parse(b'{}\n{"type":"event"}\n{"a":1}')

    assert parsed.items[0].payload == b'{"a":1}'


@pytest.mark.parametrize(
    "data",
    [
        b"not json\n",
        b"[1]\n",
        b'{}\n{"type":"event","length":100}\nshort\n',
        b'{}\n{"type":"event","length":-1}\n\n',
        b'{}\nnot-a-header\n',
        b"[" * 200_000 + b"\n",
    ],
)
def test_broken_framing_is_malformed(data) -> None:
    with pytest.raises(MalformedPayload):
        Envelope.parse(data)


def test_items_of_type_filters() -> None:
    envelope = Envelope(items=[
        EnvelopeItem(headers={"type": "event"}),
        EnvelopeItem.for_client_report(b"{}"),
    ])

    assert [i.type for i in envelope.items_of_type("client_report")] == ["client_report"]
