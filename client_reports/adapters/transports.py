"""Concrete transports for client report items.

Real deployments plug in their own envelope transport; these adapters cover
local recording and embedding.
"""

from __future__ import annotations

import threading
from pathlib import Path

from client_reports.core.domain.types import format_timestamp
from client_reports.core.envelope.envelope import Envelope, EnvelopeItem
from client_reports.core.ports.clock import Clock, SystemClock


class InMemoryTransport:
    """Keeps standalone envelopes in memory.

    Piggybacked items are enclosed in the caller's envelope, which the
    caller sends itself.
    """

    def __init__(self) -> None:
        self.envelopes: list[Envelope] = []
        self._lock = threading.Lock()

    def send_item(self, item: EnvelopeItem, envelope: Envelope | None = None) -> bool:
        if envelope is not None:
            envelope.add_item(item)
            return True

        with self._lock:
            self.envelopes.append(Envelope(items=[item]))
        return True


class EnvelopeDirectoryTransport:
    """Writes each standalone envelope to its own file in a directory.

    File names are ``client-report-<seq>.envelope`` with a zero-padded
    sequence number; each envelope header carries ``sent_at``.
    """

    def __init__(self, directory: str | Path, clock: Clock | None = None) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._clock = clock if clock is not None else SystemClock()
        self._lock = threading.Lock()
        self._seq = 0

    @property
    def directory(self) -> Path:
        return self._directory

    def send_item(self, item: EnvelopeItem, envelope: Envelope | None = None) -> bool:
        if envelope is not None:
            envelope.add_item(item)
            return True

        standalone = Envelope(
            headers={"sent_at": format_timestamp(self._clock.now())},
            items=[item],
        )
        with self._lock:
            self._seq += 1
            path = self._directory / f"client-report-{self._seq:06d}.envelope"
        path.write_bytes(standalone.serialize())
        return True
