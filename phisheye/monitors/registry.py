"""Registry that owns every monitor and answers the protection toggles."""

from __future__ import annotations

import logging
from typing import Iterator, TypeVar

from ..errors import PermissionDenied
from .base import BaseMonitor, MonitorState

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseMonitor)


class MonitorRegistry:
    """Monitors keyed by id, in registration order."""

    def __init__(self):
        self._monitors: dict[str, BaseMonitor] = {}

    def register(self, monitor: M) -> M:
        if monitor.monitor_id in self._monitors:
            raise ValueError(f"monitor already registered: {monitor.monitor_id}")
        self._monitors[monitor.monitor_id] = monitor
        return monitor

    def get(self, monitor_id: str) -> BaseMonitor:
        """Look up a monitor. Raises KeyError for unknown ids."""
        try:
            return self._monitors[monitor_id]
        except KeyError:
            raise KeyError(f"unknown monitor: {monitor_id}") from None

    def __contains__(self, monitor_id: object) -> bool:
        return monitor_id in self._monitors

    def __iter__(self) -> Iterator[BaseMonitor]:
        return iter(list(self._monitors.values()))

    def __len__(self) -> int:
        return len(self._monitors)

    def ids(self) -> list[str]:
        return list(self._monitors)

    async def arm_monitor(self, monitor_id: str) -> bool:
        """Arm one monitor. A permission refusal is reported as False."""
        monitor = self.get(monitor_id)
        try:
            return await monitor.arm()
        except PermissionDenied as e:
            logger.warning("Could not arm %s: %s", monitor_id, e)
            return False

    async def disarm_monitor(self, monitor_id: str) -> bool:
        return await self.get(monitor_id).disarm()

    async def disarm_all(self) -> None:
        for monitor in self:
            try:
                await monitor.disarm()
            except Exception as e:
                logger.error(f"Error disarming {monitor.monitor_id}: {e}")

    def states(self) -> dict[str, MonitorState]:
        return {monitor_id: monitor.state for monitor_id, monitor in self._monitors.items()}

    def protection_stats(self) -> dict:
        """Totals across monitors for the protection overview."""
        states = list(self.states().values())
        return {
            "total_threats": sum(s.threats_detected for s in states),
            "blocked": sum(s.blocked_count for s in states),
            "quarantined": sum(s.quarantined_count for s in states),
            "scan_count": sum(s.scans_performed for s in states),
            "armed_monitors": sum(1 for s in states if s.armed),
            "monitors": len(states),
        }
