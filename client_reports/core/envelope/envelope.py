"""Envelope framing.

An envelope is newline-delimited: one JSON header line, then for every item
a JSON item-header line followed by the item payload. When the item header
carries ``length`` the payload is exactly that many bytes, otherwise it runs
to the next newline.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from client_reports.core.domain.discard_reasons import DataCategory
from client_reports.core.domain.errors import MalformedPayload

CLIENT_REPORT_ITEM_TYPE: str = "client_report"

# Item type -> data category used when a whole envelope is lost.
ITEM_TYPE_CATEGORIES: dict[str, str] = {
    "event": DataCategory.ERROR,
    "transaction": DataCategory.TRANSACTION,
    "attachment": DataCategory.ATTACHMENT,
    "session": DataCategory.SESSION,
    "sessions": DataCategory.SESSION,
    "client_report": DataCategory.INTERNAL,
    "profile": DataCategory.PROFILE,
    "check_in": DataCategory.MONITOR,
    "replay_event": DataCategory.REPLAY,
    "replay_recording": DataCategory.REPLAY,
    "span": DataCategory.SPAN,
}


@dataclass(slots=True)
class EnvelopeItem:
    """One typed item inside an envelope."""

    headers: dict[str, Any]
    payload: bytes = b""

    @classmethod
    def for_client_report(cls, payload: bytes) -> EnvelopeItem:
        return cls(
            headers={"type": CLIENT_REPORT_ITEM_TYPE, "length": len(payload)},
            payload=payload,
        )

    @property
    def type(self) -> str | None:
        value = self.headers.get("type")
        return value if isinstance(value, str) else None

    @property
    def is_client_report(self) -> bool:
        return self.type == CLIENT_REPORT_ITEM_TYPE

    def serialize(self) -> bytes:
        headers = dict(self.headers)
        headers["length"] = len(self.payload)
        return _dump_line(headers) + self.payload + b"\n"


@dataclass(slots=True)
class Envelope:
    """Multi-part container bundling typed items for one transmission."""

    headers: dict[str, Any] = field(default_factory=dict)
    items: list[EnvelopeItem] = field(default_factory=list)

    def add_item(self, item: EnvelopeItem) -> None:
        self.items.append(item)

    def items_of_type(self, item_type: str) -> Iterator[EnvelopeItem]:
        return (item for item in self.items if item.type == item_type)

    def serialize(self) -> bytes:
        return _dump_line(self.headers) + b"".join(item.serialize() for item in self.items)

    @classmethod
    def parse(cls, data: bytes) -> Envelope:
        """Parse envelope bytes.

        Raises:
            MalformedPayload: a header line is not a JSON object or an item
                declares more payload bytes than remain.
        """
        header_line, pos = _read_line(data, 0)
        envelope = cls(headers=_load_header(header_line, "envelope header"))

        while pos < len(data):
            line, pos = _read_line(data, pos)
            if not line.strip():
                continue

            headers = _load_header(line, "item header")
            length = headers.get("length")
            if length is None:
                payload, pos = _read_line(data, pos)
            else:
                if isinstance(length, bool) or not isinstance(length, int) or length < 0:
                    raise MalformedPayload(f"invalid item length: {length!r}")
                end = pos + length
                if end > len(data):
                    raise MalformedPayload(
                        f"item declares {length} bytes, only {len(data) - pos} remain"
                    )
                payload = data[pos:end]
                pos = end
                # Optional newline terminating the payload.
                if data[pos:pos + 1] == b"\n":
                    pos += 1

            envelope.add_item(EnvelopeItem(headers=headers, payload=payload))

        return envelope


def data_category_for_item(item: EnvelopeItem) -> str:
    """Return the data category outcomes for ``item`` are counted under."""
    item_type = item.type
    if item_type is None:
        return DataCategory.DEFAULT
    return ITEM_TYPE_CATEGORIES.get(item_type, DataCategory.DEFAULT)


def countable_items(items: Iterable[EnvelopeItem]) -> Iterator[EnvelopeItem]:
    """Items that produce an outcome when lost. Client reports never do."""
    return (item for item in items if not item.is_client_report)


def _dump_line(obj: dict[str, Any]) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode("utf-8") + b"\n"


def _read_line(data: bytes, pos: int) -> tuple[bytes, int]:
    end = data.find(b"\n", pos)
    if end == -1:
        return data[pos:], len(data)
    return data[pos:end], end + 1


def _load_header(line: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(line.decode("utf-8")) if line.strip() else {}
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as exc:
        raise MalformedPayload(f"{what} is not valid JSON") from exc
    if not isinstance(obj, dict):
        raise MalformedPayload(f"{what} must be a JSON object")
    return obj
