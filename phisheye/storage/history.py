"""Bounded scan history and the sink interface monitors publish to."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Iterable, Protocol

from ..engine.models import ScanRecord

logger = logging.getLogger(__name__)


class ScanRecordSink(Protocol):
    """Anything that accepts scan records (fire-and-forget)."""

    def append(self, record: ScanRecord) -> None:  # pragma: no cover - interface
        ...


class ScanHistory:
    """Newest-first, bounded, in-memory scan history.

    This is the global history the dashboard summarizes. Records are
    immutable; the only removal is eviction of the oldest entry once
    ``capacity`` is exceeded.
    """

    def __init__(self, capacity: int = 500):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._records: deque[ScanRecord] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, record: ScanRecord) -> None:
        with self._lock:
            self._records.appendleft(record)

    def snapshot(self) -> tuple[ScanRecord, ...]:
        """Point-in-time copy, most recent first."""
        with self._lock:
            return tuple(self._records)

    def latest(self, limit: int = 10) -> list[ScanRecord]:
        with self._lock:
            return list(self._records)[: max(0, limit)]

    def __len__(self) -> int:
        return len(self._records)


def publish(record: ScanRecord, sinks: Iterable[ScanRecordSink]) -> int:
    """Hand a record to every sink. Failures are logged, never raised.

    Returns the number of sinks that accepted the record.
    """
    accepted = 0
    for sink in sinks:
        try:
            sink.append(record)
            accepted += 1
        except Exception as exc:
            logger.error(
                "Scan record sink %s failed for %s: %s",
                sink.__class__.__name__,
                record.id,
                exc,
            )
    return accepted
