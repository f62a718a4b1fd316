from __future__ import annotations

from typing import Any

from prometheus_client import CollectorRegistry, Counter

from client_reports.core.events.events import (
    AttachmentFailedEvent,
    ClientReportFlushedEvent,
    FlushSkippedEvent,
)


class PrometheusEventSink:
    """Counts client report flushes in a private Prometheus registry.

    Metrics:
    - client_report_flushes_total{trigger}
    - client_report_outcomes_total{outcome_list}
    - client_report_flush_skipped_total{trigger,reason}
    - client_report_attachment_failures_total{trigger}
    - client_report_lost_outcomes_total
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self._flushes = Counter(
            "client_report_flushes",
            "Client reports handed to the transport.",
            labelnames=["trigger"],
            registry=self.registry,
        )
        self._outcomes = Counter(
            "client_report_outcomes",
            "Outcome quantities reported, by payload list.",
            labelnames=["outcome_list"],
            registry=self.registry,
        )
        self._skipped = Counter(
            "client_report_flush_skipped",
            "Flush attempts that produced no report.",
            labelnames=["trigger", "reason"],
            registry=self.registry,
        )
        self._attachment_failures = Counter(
            "client_report_attachment_failures",
            "Client report items the transport did not accept.",
            labelnames=["trigger"],
            registry=self.registry,
        )
        self._lost = Counter(
            "client_report_lost_outcomes",
            "Outcome quantities dropped with a failed attachment.",
            registry=self.registry,
        )

    def on_event(self, event: Any) -> None:
        if isinstance(event, ClientReportFlushedEvent):
            self._flushes.labels(trigger=event.trigger).inc()
            for outcome_list, quantity in event.quantities.items():
                if quantity:
                    self._outcomes.labels(outcome_list=outcome_list).inc(quantity)
        elif isinstance(event, FlushSkippedEvent):
            self._skipped.labels(trigger=event.trigger, reason=event.reason).inc()
        elif isinstance(event, AttachmentFailedEvent):
            self._attachment_failures.labels(trigger=event.trigger).inc()
            if event.lost_quantity:
                self._lost.inc(event.lost_quantity)
