"""Transport-role policy for client reports.

Decoding never looks at the role. Whoever owns transport-role state calls
into this module to decide what a leaf process may accept or emit.
"""

from __future__ import annotations

import logging

from client_reports.core.domain.types import (
    OUTCOME_LIST_FIELDS,
    RELAY_ONLY_KINDS,
    ClientReport,
    Role,
)

LOGGER = logging.getLogger(__name__)


def relay_only_outcomes(report: ClientReport) -> list[str]:
    """Return the relay-only kinds that carry at least one outcome."""
    return [
        kind
        for kind in OUTCOME_LIST_FIELDS
        if kind in RELAY_ONLY_KINDS and report.outcomes(kind)
    ]


def allows_kind(role: Role, kind: str) -> bool:
    """Return True if a process in ``role`` may emit outcomes of ``kind``."""
    if role == "relay":
        return True
    return kind not in RELAY_ONLY_KINDS


def restrict_to_role(report: ClientReport, role: Role) -> ClientReport:
    """Return ``report`` with every list the role may not carry emptied."""
    offending = [] if role == "relay" else relay_only_outcomes(report)
    if not offending:
        return report

    LOGGER.warning(
        "Dropping relay-only outcomes from client report",
        extra={"role": role, "kinds": offending},
    )
    return report.model_copy(
        update={OUTCOME_LIST_FIELDS[kind]: [] for kind in offending}
    )
