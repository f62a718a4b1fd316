"""Core shared data models for client reports.

This module defines the canonical types for outcome keys, outcome entries
and the client report payload. The pydantic models mirror
``core/schemas/client_report.schema.json`` (the JSON schema is the source
of truth for the wire shape).
"""

# pylint: disable=missing-class-docstring,missing-function-docstring
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# ---------------------------------------------------------------------------
# Keys, kinds, roles
# ---------------------------------------------------------------------------

Role = Literal["leaf", "relay"]

OutcomeKind = Literal["discarded", "rate_limited", "filtered", "filtered_sampling"]

# Payload list name per outcome kind. Order is the wire order.
OUTCOME_LIST_FIELDS: dict[str, str] = {
    "discarded": "discarded_events",
    "rate_limited": "rate_limited_events",
    "filtered": "filtered_events",
    "filtered_sampling": "filtered_sampling_events",
}

# Kinds only an intermediary (relay) may emit.
RELAY_ONLY_KINDS: frozenset[str] = frozenset(
    {
        "rate_limited",
        "filtered",
        "filtered_sampling",
    }
)


@dataclass(frozen=True, slots=True)
class OutcomeKey:
    """Tally key. Both parts are opaque strings."""

    reason: str
    category: str


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class Outcome(BaseModel):
    reason: str = Field(..., min_length=1, strict=True)
    category: str = Field(..., min_length=1, strict=True)
    quantity: int = Field(..., ge=0, strict=True)

    model_config = ConfigDict(extra="ignore", frozen=True)

    @property
    def key(self) -> OutcomeKey:
        return OutcomeKey(reason=self.reason, category=self.category)


class ClientReport(BaseModel):
    """
    Client report payload.

    Notes:
    - timestamp accepts ISO-8601 strings and UNIX seconds; naive values are UTC.
    - timestamp is None when the sender left it unset. Producers fill it
      from their clock before encoding.
    - unknown top-level keys are ignored so newer senders stay decodable.
    """

    timestamp: datetime | None = None

    discarded_events: list[Outcome] = Field(default_factory=list)
    rate_limited_events: list[Outcome] = Field(default_factory=list)
    filtered_events: list[Outcome] = Field(default_factory=list)
    filtered_sampling_events: list[Outcome] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _reject_bool_timestamp(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("timestamp must be an ISO-8601 string or UNIX seconds")
        return value

    @field_validator("timestamp", mode="after")
    @classmethod
    def _normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_serializer("timestamp")
    def _render_timestamp(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        return format_timestamp(value)

    def outcomes(self, kind: str) -> list[Outcome]:
        return getattr(self, OUTCOME_LIST_FIELDS[kind])

    def total_quantity(self) -> int:
        return sum(
            outcome.quantity
            for field_name in OUTCOME_LIST_FIELDS.values()
            for outcome in getattr(self, field_name)
        )

    def is_empty(self) -> bool:
        return all(not getattr(self, name) for name in OUTCOME_LIST_FIELDS.values())


def format_timestamp(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with a trailing ``Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    rendered = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        rendered += f".{value.microsecond:06d}"
    return rendered + "Z"
