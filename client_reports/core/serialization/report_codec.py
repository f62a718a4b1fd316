"""Client report payload codec.

Turns a drained tally into the JSON payload of a ``client_report`` envelope
item and back. Encoding groups outcomes by kind; the relay-only lists are
written only for the relay role. Decoding validates shape and types but
applies no role policy (see ``core.domain.role_policy``).
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Mapping

from pydantic import ValidationError

from client_reports.core.counter.outcome_counter import TallySnapshot
from client_reports.core.domain.errors import MalformedPayload
from client_reports.core.domain.types import (
    OUTCOME_LIST_FIELDS,
    RELAY_ONLY_KINDS,
    ClientReport,
    Role,
    format_timestamp,
)


def build_report(snapshot: TallySnapshot, timestamp: datetime, role: Role) -> ClientReport:
    """Build a report model from a snapshot.

    Outcomes of relay-only kinds are left out for the leaf role.
    """
    lists: dict[str, Any] = {}
    for kind, field_name in OUTCOME_LIST_FIELDS.items():
        if kind in RELAY_ONLY_KINDS and role != "relay":
            continue
        lists[field_name] = snapshot.outcomes(kind)
    return ClientReport(timestamp=timestamp, **lists)


def report_to_payload(report: ClientReport, role: Role) -> dict[str, Any]:
    """Dump a report to its JSON-compatible wire dict."""
    payload: dict[str, Any] = {}
    if report.timestamp is not None:
        payload["timestamp"] = format_timestamp(report.timestamp)

    for kind, field_name in OUTCOME_LIST_FIELDS.items():
        if kind in RELAY_ONLY_KINDS and role != "relay":
            continue
        payload[field_name] = [
            outcome.model_dump(mode="json") for outcome in report.outcomes(kind)
        ]
    return payload


def serialize(snapshot: TallySnapshot, timestamp: datetime, role: Role) -> dict[str, Any]:
    """Return the wire payload for ``snapshot``.

    ``discarded_events`` is always present. ``rate_limited_events``,
    ``filtered_events`` and ``filtered_sampling_events`` are present only
    for the relay role.
    """
    return report_to_payload(build_report(snapshot, timestamp, role), role)


def encode(payload: Mapping[str, Any]) -> bytes:
    """Encode a wire payload as compact UTF-8 JSON."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def deserialize(data: bytes | str | Mapping[str, Any]) -> ClientReport:
    """Decode and validate a client report payload.

    Raises:
        MalformedPayload: the data is not a JSON object, a required field is
            missing or mistyped, or a quantity is negative.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedPayload("client report is not valid UTF-8") from exc

    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(f"client report is not valid JSON: {exc.msg}") from exc
        except RecursionError as exc:
            raise MalformedPayload("client report is nested too deeply") from exc

    if not isinstance(data, Mapping):
        raise MalformedPayload(
            f"client report must be a JSON object, got {type(data).__name__}"
        )

    try:
        return ClientReport.model_validate(dict(data))
    except ValidationError as exc:
        raise MalformedPayload(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "invalid client report: " + "; ".join(parts)
