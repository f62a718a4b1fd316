"""Public API for the client_reports package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Aggregator API
# ----------------------------------------------------------------------
from client_reports.aggregator import ClientReportAggregator
from client_reports.core.config.client_report_config import ClientReportConfig

# ----------------------------------------------------------------------
# Building blocks
# ----------------------------------------------------------------------
from client_reports.core.counter.outcome_counter import OutcomeCounter, TallySnapshot
from client_reports.core.scheduler.flush_scheduler import FlushScheduler
from client_reports.core.serialization.report_codec import (
    deserialize,
    encode,
    serialize,
)

# ----------------------------------------------------------------------
# Domain types
# ----------------------------------------------------------------------
from client_reports.core.domain.discard_reasons import DataCategory, DiscardReason
from client_reports.core.domain.errors import (
    AttachmentFailed,
    ClientReportError,
    MalformedPayload,
)
from client_reports.core.domain.types import (
    ClientReport,
    Outcome,
    OutcomeKey,
    OutcomeKind,
    Role,
)
from client_reports.core.envelope.envelope import Envelope, EnvelopeItem

# ----------------------------------------------------------------------
# Collaborator interfaces
# ----------------------------------------------------------------------
from client_reports.core.ports.clock import Clock, FixedClock, SystemClock
from client_reports.core.ports.role_provider import RoleProvider, StaticRoleProvider
from client_reports.core.ports.transport import Transport

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Aggregator
    "ClientReportAggregator",
    "ClientReportConfig",

    # Building blocks
    "OutcomeCounter",
    "TallySnapshot",
    "FlushScheduler",
    "serialize",
    "deserialize",
    "encode",

    # Domain
    "ClientReport",
    "Outcome",
    "OutcomeKey",
    "OutcomeKind",
    "Role",
    "DiscardReason",
    "DataCategory",
    "Envelope",
    "EnvelopeItem",

    # Errors
    "ClientReportError",
    "MalformedPayload",
    "AttachmentFailed",

    # Collaborators
    "Transport",
    "Clock",
    "SystemClock",
    "FixedClock",
    "RoleProvider",
    "StaticRoleProvider",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("client-reports")
except PackageNotFoundError:
    __version__ = "0.0.0"
