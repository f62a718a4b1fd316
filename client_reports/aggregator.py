"""Client report aggregator facade.

One aggregator belongs to one transport instance. Every code path that can
drop an event receives the aggregator explicitly; there is no process-wide
singleton.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from client_reports.core.counter.outcome_counter import OutcomeCounter
from client_reports.core.domain.role_policy import allows_kind
from client_reports.core.domain.types import OutcomeKind
from client_reports.core.envelope.envelope import countable_items, data_category_for_item
from client_reports.core.ports.role_provider import StaticRoleProvider
from client_reports.core.scheduler.flush_scheduler import TRIGGER_MANUAL, FlushScheduler

if TYPE_CHECKING:
    from client_reports.core.config.client_report_config import ClientReportConfig
    from client_reports.core.envelope.envelope import Envelope, EnvelopeItem
    from client_reports.core.events.event_bus import EventBus
    from client_reports.core.ports.clock import Clock
    from client_reports.core.ports.role_provider import RoleProvider
    from client_reports.core.ports.transport import Transport

LOGGER = logging.getLogger(__name__)


class ClientReportAggregator:
    """Counts lost events and emits them as client reports."""

    def __init__(
        self,
        config: ClientReportConfig,
        scheduler: FlushScheduler,
        role_provider: RoleProvider,
    ) -> None:
        self.config = config
        self.scheduler = scheduler
        self._role_provider = role_provider

    @classmethod
    def from_config(
        cls,
        config: ClientReportConfig,
        transport: Transport,
        *,
        clock: Clock | None = None,
        role_provider: RoleProvider | None = None,
        event_bus: EventBus | None = None,
    ) -> ClientReportAggregator:
        if role_provider is None:
            role_provider = StaticRoleProvider(config.role)

        scheduler = FlushScheduler(
            OutcomeCounter(),
            transport,
            clock=clock,
            role_provider=role_provider,
            event_bus=event_bus,
            interval_seconds=config.flush_interval_seconds,
        )
        return cls(config, scheduler, role_provider)

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def record_lost_event(
        self,
        reason: str,
        category: str,
        quantity: int = 1,
        kind: OutcomeKind = "discarded",
    ) -> None:
        """Count ``quantity`` events of ``category`` dropped for ``reason``."""
        if not self.enabled:
            return
        if not allows_kind(self._role_provider.role(), kind):
            LOGGER.debug(
                "Ignoring relay-only outcome in leaf process",
                extra={"reason": reason, "category": category, "kind": kind},
            )
            return
        self.scheduler.record(reason, category, quantity, kind)

    def record_lost_envelope(self, reason: str, envelope: Envelope) -> None:
        """Count one lost outcome per item of a dropped envelope.

        Client report items are not counted.
        """
        if not self.enabled:
            return
        for item in countable_items(envelope.items):
            self.scheduler.record(reason, data_category_for_item(item))

    def attach_pending(self, envelope: Envelope) -> EnvelopeItem | None:
        """Attach pending counts to an envelope about to be sent."""
        if not self.enabled or not self.config.piggyback:
            return None
        return self.scheduler.attach_pending(envelope)

    def flush(self) -> EnvelopeItem | None:
        if not self.enabled:
            return None
        return self.scheduler.flush(TRIGGER_MANUAL)

    def start(self) -> None:
        if not self.enabled:
            return
        self.scheduler.start()

    def close(self, timeout: float | None = None) -> None:
        self.scheduler.close(timeout)
