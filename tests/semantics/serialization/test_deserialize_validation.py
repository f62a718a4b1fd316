"""
Semantic test: decode-time validation.

Invariant:
deserialize raises MalformedPayload for missing or mistyped required fields
and negative quantities. Unknown reasons and categories are accepted and
preserved verbatim. Timestamps decode from ISO-8601 strings and UNIX seconds.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from client_reports.core.domain.errors import MalformedPayload
from client_reports.core.serialization.report_codec import deserialize


def _payload(**overrides):
    payload = {
        "timestamp": "2020-02-07T14:16:00Z",
        "discarded_events": [
            {"reason": "queue_overflow", "category": "error", "quantity": 23},
        ],
    }
    payload.update(overrides)
    return payload


def test_negative_quantity_is_malformed() -> None:
    with pytest.raises(MalformedPayload):
        deserialize(_payload(discarded_events=[
            {"reason": "queue_overflow", "category": "error", "quantity": -1},
        ]))


def test_unknown_reason_is_preserved() -> None:
    report = deserialize(_payload(discarded_events=[
        {"reason": "my_custom_reason", "category": "brand_new_category", "quantity": 3},
    ]))

    outcome = report.discarded_events[0]
    assert outcome.reason == "my_custom_reason"
    assert outcome.category == "brand_new_category"
    assert outcome.quantity == 3


@pytest.mark.parametrize(
    "entry",
    [
        {"category": "error", "quantity": 1},
        {"reason": "queue_overflow", "quantity": 1},
        {"reason": "queue_overflow", "category": "error"},
        {"reason": 5, "category": "error", "quantity": 1},
        {"reason": "queue_overflow", "category": "error", "quantity": "1"},
        {"reason": "queue_overflow", "category": "error", "quantity": 1.5},
        {"reason": "queue_overflow", "category": "error", "quantity": True},
        {"reason": "", "category": "error", "quantity": 1},
    ],
)
def test_missing_or_mistyped_entry_field_is_malformed(entry) -> None:
    with pytest.raises(MalformedPayload):
        deserialize(_payload(discarded_events=[entry]))


@pytest.mark.parametrize(
    "data",
    [
        b"not json",
        b"[1, 2, 3]",
        b"\xff\xfe",
        '"a string"',
        b"[" * 200_000,
    ],
)
def test_non_object_payload_is_malformed(data) -> None:
    with pytest.raises(MalformedPayload):
        deserialize(data)


def test_mistyped_list_is_malformed() -> None:
    with pytest.raises(MalformedPayload):
        deserialize(_payload(rate_limited_events={"reason": "x"}))


def test_unparsable_timestamp_is_malformed() -> None:
    with pytest.raises(MalformedPayload):
        deserialize(_payload(timestamp="yesterday-ish"))


def test_malformed_payload_chains_cause() -> None:
    with pytest.raises(MalformedPayload) as excinfo:
        deserialize(b"{")
    assert excinfo.value.__cause__ is not None


def test_numeric_timestamp_is_unix_seconds() -> None:
    report = deserialize(_payload(timestamp=1581084960))

    assert report.timestamp == datetime(2020, 2, 7, 14, 16, 0, tzinfo=timezone.utc)


def test_naive_iso_timestamp_is_utc() -> None:
    report = deserialize(_payload(timestamp="2020-02-07T14:16:00"))

    assert report.timestamp == datetime(2020, 2, 7, 14, 16, 0, tzinfo=timezone.utc)


def test_offset_timestamp_is_normalized_to_utc() -> None:
    report = deserialize(_payload(timestamp="2020-02-07T16:16:00+02:00"))

    assert report.timestamp == datetime(2020, 2, 7, 14, 16, 0, tzinfo=timezone.utc)
    assert report.timestamp.utcoffset().total_seconds() == 0


def test_missing_lists_default_to_empty_and_unknown_keys_ignored() -> None:
    report = deserialize({"timestamp": "2020-02-07T14:16:00Z", "future_field": {"x": 1}})

    assert report.is_empty()
    assert report.discarded_events == []


def test_zero_quantity_is_accepted() -> None:
    report = deserialize(_payload(discarded_events=[
        {"reason": "queue_overflow", "category": "error", "quantity": 0},
    ]))

    assert report.discarded_events[0].quantity == 0
