"""Concurrent outcome tally.

Writers call ``increment`` from any event-processing path, including error
handlers. A single reader drains the tally by swapping the whole structure
under a short-held lock, so increments never wait on serialization.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from client_reports.core.domain.types import (
    OUTCOME_LIST_FIELDS,
    Outcome,
    OutcomeKey,
)

LOGGER = logging.getLogger(__name__)

# kind -> {OutcomeKey -> quantity}; dicts keep first-insertion order.
_Tally = dict[str, dict[OutcomeKey, int]]


@dataclass(frozen=True, slots=True)
class TallySnapshot:
    """Immutable view of a drained tally."""

    tallies: Mapping[str, Mapping[OutcomeKey, int]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not any(self.tallies.values())

    def total(self) -> int:
        return sum(sum(per_kind.values()) for per_kind in self.tallies.values())

    def kinds(self) -> list[str]:
        """Kinds with at least one entry, in wire order."""
        return [kind for kind in OUTCOME_LIST_FIELDS if self.tallies.get(kind)]

    def quantity(self, reason: str, category: str, kind: str = "discarded") -> int:
        per_kind = self.tallies.get(kind, {})
        return per_kind.get(OutcomeKey(reason=reason, category=category), 0)

    def outcomes(self, kind: str = "discarded") -> list[Outcome]:
        """Return outcome entries for ``kind`` in first-insertion order."""
        per_kind = self.tallies.get(kind, {})
        return [
            Outcome(reason=key.reason, category=key.category, quantity=qty)
            for key, qty in per_kind.items()
        ]


class OutcomeCounter:
    """Tally of lost outcomes keyed by (reason, category) per outcome kind.

    ``increment`` is total: inputs that cannot be counted are ignored.
    ``drain_snapshot`` returns everything counted so far and resets the
    tally in one step. Nothing is persisted.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tally: _Tally = {}

    def increment(
        self,
        reason: str,
        category: str,
        quantity: int = 1,
        kind: str = "discarded",
    ) -> bool:
        """Add ``quantity`` to the tally for (reason, category).

        Returns True if the tally changed.
        """
        if not _countable(reason, category, quantity, kind):
            LOGGER.debug(
                "Ignoring uncountable outcome",
                extra={
                    "reason": reason,
                    "category": category,
                    "quantity": quantity,
                    "kind": kind,
                },
            )
            return False
        if quantity == 0:
            return False

        key = OutcomeKey(reason=reason, category=category)
        with self._lock:
            per_kind = self._tally.setdefault(kind, {})
            per_kind[key] = per_kind.get(key, 0) + quantity
        return True

    def drain_snapshot(self) -> TallySnapshot:
        """Atomically take the current tally and reset to empty."""
        with self._lock:
            drained, self._tally = self._tally, {}

        return TallySnapshot(
            tallies=MappingProxyType(
                {kind: MappingProxyType(per_kind) for kind, per_kind in drained.items()}
            )
        )

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not any(self._tally.values())

    def pending_total(self) -> int:
        with self._lock:
            return sum(sum(per_kind.values()) for per_kind in self._tally.values())


def _countable(reason: object, category: object, quantity: object, kind: object) -> bool:
    if not isinstance(reason, str) or not reason:
        return False
    if not isinstance(category, str) or not category:
        return False
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
        return False
    return kind in OUTCOME_LIST_FIELDS
