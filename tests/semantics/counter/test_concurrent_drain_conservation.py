"""
Semantic test: increments racing a drain are conserved.

Invariant:
When increments race drains, the quantities across all drained snapshots
plus the final tally equal the total of all increments issued. Nothing is
lost and nothing is counted twice.
"""

from __future__ import annotations

import threading

from client_reports.core.counter.outcome_counter import OutcomeCounter

WRITERS = 8
INCREMENTS_PER_WRITER = 2_000


def test_no_increment_lost_across_drains() -> None:
    counter = OutcomeCounter()
    start = threading.Barrier(WRITERS + 1)
    writers_done = threading.Event()
    drained_total = 0

    def write(index: int) -> None:
        start.wait()
        category = "error" if index % 2 else "transaction"
        for _ in range(INCREMENTS_PER_WRITER):
            counter.increment("queue_overflow", category, 1)

    def drain() -> None:
        nonlocal drained_total
        start.wait()
        while not writers_done.is_set():
            drained_total += counter.drain_snapshot().total()

    threads = [threading.Thread(target=write, args=(i,)) for i in range(WRITERS)]
    drainer = threading.Thread(target=drain)

    drainer.start()
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    writers_done.set()
    drainer.join()

    drained_total += counter.drain_snapshot().total()

    assert drained_total == WRITERS * INCREMENTS_PER_WRITER
