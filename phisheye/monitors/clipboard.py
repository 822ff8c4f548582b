"""Clipboard monitor: periodically scans copied text for URLs."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..constants import Surface
from ..engine.extractors import candidate_from_text, same_candidate
from ..engine.models import ScanRecord
from ..errors import ExtractionMiss, PermissionDenied
from .base import PeriodicMonitor

logger = logging.getLogger(__name__)


class ClipboardSource(Protocol):
    """Platform clipboard access."""

    async def ensure_permission(self) -> None:
        """Raise PermissionDenied when clipboard reads are not allowed."""

    async def read_text(self) -> str:
        """Current clipboard text. May raise PermissionDenied."""


class ClipboardMonitor(PeriodicMonitor):
    """
    Poll the clipboard and score the first URL found in it.

    Arming asks the source for permission first; a refusal leaves the
    monitor disarmed with ``last_error`` set. Losing permission while
    armed disarms the monitor. The same URL is never scored twice in a
    row.
    """

    surface = Surface.CLIPBOARD

    def __init__(self, engine, thresholds, source: ClipboardSource, **kwargs):
        super().__init__(engine, thresholds, **kwargs)
        self.source = source
        self._last_text: Optional[str] = None

    async def _before_arm(self) -> None:
        try:
            await self.source.ensure_permission()
        except PermissionDenied as e:
            self._state.last_error = str(e) or "clipboard permission denied"
            logger.warning("Clipboard permission denied: %s", self._state.last_error)
            raise

    async def tick(self) -> Optional[ScanRecord]:
        if not self.armed:
            return None
        generation = self.generation

        try:
            text = await self.source.read_text()
        except PermissionDenied as e:
            logger.warning("Clipboard access revoked, disarming: %s", e)
            await self.disarm()
            self._state.last_error = str(e) or "clipboard permission revoked"
            return None

        try:
            candidate = candidate_from_text(text, self.surface.value)
        except ExtractionMiss:
            return None

        if generation != self.generation:
            return None
        if same_candidate(self._last_text, candidate):
            return None
        self._last_text = candidate.text

        verdict = self.evaluate(candidate)
        return self.record(candidate, verdict, generation)
