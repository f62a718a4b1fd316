"""Transport protocol for handing off client report items.

The transport owns envelope delivery, retry and backoff. The scheduler only
hands it a serialized item and never waits on delivery.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from client_reports.core.envelope.envelope import Envelope, EnvelopeItem


class Transport(Protocol):
    """Envelope-facing handoff boundary."""

    def send_item(self, item: EnvelopeItem, envelope: Envelope | None = None) -> bool:
        """Accept ``item`` for delivery.

        When ``envelope`` is given the item must be enclosed in that
        outgoing envelope instead of a standalone one. Return False (or
        raise) if the item was not accepted.
        """
