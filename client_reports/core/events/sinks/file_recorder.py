"""
Append-only file recorder sink.
"""
from __future__ import annotations

import json
import threading
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


class FileRecorderSink:
    """Writes each event as a JSON line to a file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = self._path.open("a", encoding="utf-8")
        # Events arrive from the flush timer thread and from callers.
        self._lock = threading.Lock()
        self._closed = False

    def on_event(self, event: Any) -> None:
        record = asdict(event) if is_dataclass(event) else {"event": str(event)}
        record["event_type"] = type(event).__name__
        with self._lock:
            if self._closed:
                return
            self._fh.write(json.dumps(record) + "\n")
            self._fh.flush()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._fh.flush()
            self._fh.close()
            self._closed = True
