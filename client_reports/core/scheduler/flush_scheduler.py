"""Flush scheduler for client reports.

The scheduler owns the path from tally to transport: it drains the outcome
counter, serializes the snapshot for the current role and hands the
resulting envelope item to the transport. Flushes are triggered by a
periodic timer, by an outgoing envelope (piggyback) or explicitly.

Delivery is best-effort. A failed handoff loses the drained counts, and
whatever is still pending at shutdown is discarded.
"""

# pylint: disable=too-many-instance-attributes,too-many-arguments
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from client_reports.core.domain.errors import AttachmentFailed
from client_reports.core.domain.types import OUTCOME_LIST_FIELDS, OutcomeKind, format_timestamp
from client_reports.core.envelope.envelope import EnvelopeItem
from client_reports.core.events.events import (
    AttachmentFailedEvent,
    ClientReportFlushedEvent,
    FlushSkippedEvent,
    FlushStateTransitionEvent,
)
from client_reports.core.events.event_bus import EventBus, NullEventBus
from client_reports.core.ports.clock import SystemClock
from client_reports.core.ports.role_provider import StaticRoleProvider
from client_reports.core.scheduler.flush_state_machine import (
    ARMED,
    FLUSHING,
    IDLE,
    is_valid_transition,
)
from client_reports.core.serialization.report_codec import encode, serialize

if TYPE_CHECKING:
    from client_reports.core.counter.outcome_counter import OutcomeCounter
    from client_reports.core.envelope.envelope import Envelope
    from client_reports.core.ports.clock import Clock
    from client_reports.core.ports.role_provider import RoleProvider
    from client_reports.core.ports.transport import Transport

LOGGER = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL_SECONDS: float = 30.0

TRIGGER_TIMER: str = "timer"
TRIGGER_PIGGYBACK: str = "piggyback"
TRIGGER_MANUAL: str = "manual"


class FlushScheduler:
    """Decides when to drain the counter and emit a client report.

    States: ``idle`` (nothing pending), ``armed`` (pending counts) and
    ``flushing``. Only one flush runs at a time; a concurrent flush request
    returns immediately instead of waiting.
    """

    def __init__(
        self,
        counter: OutcomeCounter,
        transport: Transport,
        *,
        clock: Clock | None = None,
        role_provider: RoleProvider | None = None,
        event_bus: EventBus | None = None,
        interval_seconds: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")

        self._counter = counter
        self._transport = transport
        self._clock = clock if clock is not None else SystemClock()
        self._role_provider = role_provider if role_provider is not None else StaticRoleProvider()
        self._event_bus = event_bus if event_bus is not None else NullEventBus()
        self.interval_seconds = interval_seconds

        self._state = IDLE
        self._state_lock = threading.Lock()
        self._flush_lock = threading.Lock()

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        with self._state_lock:
            return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def _transition(
        self,
        next_state: str,
        trigger: str | None,
        *,
        only_from: str | None = None,
    ) -> None:
        with self._state_lock:
            prev_state = self._state
            if prev_state == next_state:
                return
            if only_from is not None and prev_state != only_from:
                return
            self._state = next_state
        self._announce(prev_state, next_state, trigger)

    def _settle(self, trigger: str) -> None:
        # Lock order is state then counter. record() releases the counter
        # lock before it tries to arm.
        with self._state_lock:
            prev_state = self._state
            next_state = IDLE if self._counter.is_empty else ARMED
            if prev_state == next_state:
                return
            self._state = next_state
        self._announce(prev_state, next_state, trigger)

    def _announce(self, prev_state: str, next_state: str, trigger: str | None) -> None:
        if not is_valid_transition(prev_state, next_state):
            LOGGER.warning(
                "Unexpected flush state transition",
                extra={"prev_state": prev_state, "next_state": next_state},
            )

        self._event_bus.emit(
            FlushStateTransitionEvent(
                ts=self._now(),
                prev_state=prev_state,
                next_state=next_state,
                trigger=trigger,
            )
        )

    def _now(self) -> str:
        return format_timestamp(self._clock.now())

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(
        self,
        reason: str,
        category: str,
        quantity: int = 1,
        kind: OutcomeKind = "discarded",
    ) -> None:
        """Count a lost outcome and arm the scheduler."""
        if self._closed:
            return
        if not self._counter.increment(reason, category, quantity, kind):
            return

        # A flush in progress settles to ARMED once it sees the new counts.
        self._transition(ARMED, None, only_from=IDLE)

    # ------------------------------------------------------------------
    # Flushing
    # ------------------------------------------------------------------

    def flush(
        self,
        trigger: str = TRIGGER_MANUAL,
        envelope: Envelope | None = None,
    ) -> EnvelopeItem | None:
        """Drain, serialize and hand off one client report.

        Returns the item accepted by the transport, or None when nothing
        was sent (empty tally, flush already in flight, closed, or the
        transport refused the item).
        """
        if self._closed:
            return None

        if not self._flush_lock.acquire(blocking=False):
            self._skip(trigger, "in_flight")
            return None

        try:
            self._transition(FLUSHING, trigger)
            return self._flush_locked(trigger, envelope)
        finally:
            self._settle(trigger)
            self._flush_lock.release()

    def attach_pending(self, envelope: Envelope) -> EnvelopeItem | None:
        """Piggyback pending counts onto an envelope that is about to be sent."""
        if self._counter.is_empty:
            return None
        return self.flush(TRIGGER_PIGGYBACK, envelope=envelope)

    def _flush_locked(self, trigger: str, envelope: Envelope | None) -> EnvelopeItem | None:
        snapshot = self._counter.drain_snapshot()
        if snapshot.is_empty:
            self._skip(trigger, "empty")
            return None

        role = self._role_provider.role()
        payload = serialize(snapshot, self._clock.now(), role)

        quantities = {
            field_name: sum(entry["quantity"] for entry in payload[field_name])
            for field_name in OUTCOME_LIST_FIELDS.values()
            if field_name in payload
        }
        outcomes_total = sum(quantities.values())
        if outcomes_total < snapshot.total():
            LOGGER.warning(
                "Relay-only outcomes recorded by a leaf process were dropped",
                extra={"dropped": snapshot.total() - outcomes_total, "role": role},
            )
        if not outcomes_total:
            self._skip(trigger, "empty")
            return None

        item = EnvelopeItem.for_client_report(encode(payload))
        if not self._hand_off(item, envelope, trigger, outcomes_total):
            return None

        LOGGER.debug(
            "Client report handed to transport",
            extra={"trigger": trigger, "outcomes_total": outcomes_total, "role": role},
        )
        self._event_bus.emit(
            ClientReportFlushedEvent(
                ts=self._now(),
                trigger=trigger,
                role=role,
                outcomes_total=outcomes_total,
                item_length=len(item.payload),
                quantities=quantities,
            )
        )
        return item

    def _hand_off(
        self,
        item: EnvelopeItem,
        envelope: Envelope | None,
        trigger: str,
        lost_quantity: int,
    ) -> bool:
        try:
            accepted = self._transport.send_item(item, envelope)
            error = "transport refused client report"
        except Exception as exc:  # pylint: disable=broad-exception-caught
            accepted = False
            error = f"{type(exc).__name__}: {exc}"

        if accepted:
            return True

        # Counts are not restored: client reports are best-effort.
        failure = AttachmentFailed(error, trigger=trigger, lost_quantity=lost_quantity)
        LOGGER.warning(
            "Client report attachment failed",
            extra={
                "trigger": failure.trigger,
                "lost_quantity": failure.lost_quantity,
                "error": str(failure),
            },
        )
        self._event_bus.emit(
            AttachmentFailedEvent(
                ts=self._now(),
                trigger=trigger,
                error=str(failure),
                lost_quantity=lost_quantity,
            )
        )
        return False

    def _skip(self, trigger: str, reason: str) -> None:
        LOGGER.debug("Client report flush skipped", extra={"trigger": trigger, "reason": reason})
        self._event_bus.emit(FlushSkippedEvent(ts=self._now(), trigger=trigger, reason=reason))

    # ------------------------------------------------------------------
    # Periodic timer
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic flush timer (idempotent)."""
        if self._closed:
            raise RuntimeError("scheduler is closed")
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="client-report-flush",
            daemon=True,
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            if self._counter.is_empty and self.state == IDLE:
                continue
            try:
                self.flush(TRIGGER_TIMER)
            except Exception:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Periodic client report flush failed")

    def close(self, timeout: float | None = None) -> None:
        """Cancel the timer and discard anything not yet flushed."""
        if self._closed:
            return
        self._closed = True

        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

        discarded = self._counter.drain_snapshot()
        if not discarded.is_empty:
            LOGGER.debug(
                "Discarding unflushed client report counts on shutdown",
                extra={"discarded": discarded.total()},
            )
        self._transition(IDLE, None)
