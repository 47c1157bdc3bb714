"""In-memory log batch store that echoes every batch to an output stream."""

from __future__ import annotations

import json
import sys
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from threading import Lock
from typing import Any, TextIO


@dataclass(slots=True)
class LogBatch:
    payload: Any
    received_at: datetime

    @property
    def event_count(self) -> int:
        """Number of log lines and exceptions carried by a trace batch."""

        if isinstance(self.payload, dict):
            return sum(
                len(self.payload.get(key) or [])
                for key in ("logs", "exceptions")
                if isinstance(self.payload.get(key), list)
            )
        if isinstance(self.payload, list):
            return len(self.payload)
        return 1

    def to_line(self) -> str:
        return json.dumps(self.payload, separators=(",", ":"))


class LogManager:
    """Record received batches and print them as they arrive."""

    def __init__(self, output: TextIO | None = None, history_limit: int = 1000) -> None:
        self._output = output
        self._history: deque[LogBatch] = deque(maxlen=history_limit)
        self._lock = Lock()

    def append(self, payload: Any) -> LogBatch:
        batch = LogBatch(payload=payload, received_at=datetime.now(UTC))
        output = self._output or sys.stdout
        with self._lock:
            self._history.append(batch)
            output.write(batch.to_line() + "\n")
            output.flush()
        return batch

    def history(self) -> list[LogBatch]:
        with self._lock:
            return list(self._history)


__all__ = ["LogBatch", "LogManager"]
