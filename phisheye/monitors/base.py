"""Monitor lifecycle, per-monitor state and periodic scheduling."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from ..constants import Surface
from ..engine.models import Action, Candidate, ScanRecord, Thresholds, Verdict
from ..engine.scorer import ScoringEngine
from ..errors import PermissionDenied
from ..storage.history import ScanRecordSink, publish

logger = logging.getLogger(__name__)

AlertCallback = Callable[[ScanRecord], None]


@dataclass
class MonitorState:
    """Counters and recent history for one monitor."""

    monitor_id: str
    history_capacity: int = 10
    armed: bool = False
    scans_performed: int = 0
    blocked_count: int = 0
    quarantined_count: int = 0
    allowed_count: int = 0
    uptime_seconds: float = 0.0
    last_error: Optional[str] = None
    history: deque = field(init=False, repr=False)

    def __post_init__(self):
        self.history = deque(maxlen=max(1, self.history_capacity))

    @property
    def threats_detected(self) -> int:
        return self.blocked_count + self.quarantined_count

    def count(self, action: Action) -> None:
        self.scans_performed += 1
        if action is Action.BLOCK:
            self.blocked_count += 1
        elif action is Action.QUARANTINE:
            self.quarantined_count += 1
        else:
            self.allowed_count += 1

    def snapshot(self) -> dict:
        return {
            "monitor_id": self.monitor_id,
            "armed": self.armed,
            "scans_performed": self.scans_performed,
            "threats_detected": self.threats_detected,
            "blocked_count": self.blocked_count,
            "quarantined_count": self.quarantined_count,
            "allowed_count": self.allowed_count,
            "uptime_seconds": round(self.uptime_seconds, 1),
            "last_error": self.last_error,
            "history": [record.to_dict() for record in self.history],
        }


class BaseMonitor:
    """
    Common lifecycle for every monitor.

    A monitor is Disarmed or Armed. Each arm/disarm bumps a generation
    token; results computed under an older generation are dropped by
    ``record`` so that nothing a monitor started before being disarmed
    can land in its history afterwards.
    """

    surface: Surface = Surface.MANUAL

    def __init__(
        self,
        engine: ScoringEngine,
        thresholds: Thresholds,
        *,
        monitor_id: Optional[str] = None,
        sinks: Iterable[ScanRecordSink] = (),
        history_capacity: int = 10,
        on_alert: Optional[AlertCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.monitor_id = monitor_id or self.surface.value
        self.engine = engine
        self.thresholds = thresholds
        self.sinks = list(sinks)
        self.on_alert = on_alert
        self._clock = clock
        self._state = MonitorState(self.monitor_id, history_capacity=history_capacity)
        self._generation = 0
        self._armed_at: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self._state.armed

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def state(self) -> MonitorState:
        """Live state, with uptime brought up to date."""
        if self._state.armed and self._armed_at is not None:
            self._state.uptime_seconds = max(0.0, self._clock() - self._armed_at)
        return self._state

    @property
    def history(self) -> tuple[ScanRecord, ...]:
        return tuple(self._state.history)

    async def arm(self) -> bool:
        """Start monitoring. Arming an armed monitor is a no-op."""
        if self._state.armed:
            return True
        await self._before_arm()
        self._mark_armed()
        self._start()
        logger.info("Monitor %s armed", self.monitor_id)
        return True

    async def disarm(self) -> bool:
        """Stop monitoring and wait for in-flight work to be cancelled.

        Returns False (the new armed state). Disarming twice is harmless.
        """
        if not self._state.armed:
            return False
        if self._armed_at is not None:
            self._state.uptime_seconds = max(0.0, self._clock() - self._armed_at)
        self._generation += 1
        self._state.armed = False
        self._armed_at = None
        await self._stop()
        logger.info("Monitor %s disarmed", self.monitor_id)
        return False

    def _mark_armed(self) -> None:
        self._generation += 1
        self._state.armed = True
        self._state.last_error = None
        self._state.uptime_seconds = 0.0
        self._armed_at = self._clock()

    async def _before_arm(self) -> None:
        """Acquire whatever the monitor needs. Raise to refuse arming."""

    def _start(self) -> None:
        """Begin producing candidates (tasks, subscriptions)."""

    async def _stop(self) -> None:
        """Release everything ``_start`` acquired."""

    def evaluate(self, candidate: Candidate) -> Verdict:
        return self.engine.evaluate(candidate, self.thresholds)

    def record(
        self,
        candidate: Candidate,
        verdict: Verdict,
        generation: Optional[int] = None,
    ) -> Optional[ScanRecord]:
        """Store a result and fan it out. Returns None for stale results."""
        if not self._state.armed:
            logger.debug("%s: dropping result for %s (disarmed)", self.monitor_id, candidate.text)
            return None
        if generation is not None and generation != self._generation:
            logger.debug("%s: dropping stale result for %s", self.monitor_id, candidate.text)
            return None

        record = ScanRecord.create(candidate, verdict)
        self._state.history.appendleft(record)
        self._state.count(verdict.action)
        publish(record, self.sinks)

        if verdict.is_threat:
            logger.warning(
                "%s: %s %s (score %d: %s)",
                self.monitor_id,
                verdict.action.value,
                candidate.display_text,
                verdict.score,
                ", ".join(str(tag) for tag in dict.fromkeys(verdict.matched_tags)),
            )
            self._notify(record)
        else:
            logger.debug("%s: allowed %s (score %d)", self.monitor_id, candidate.text, verdict.score)
        return record

    def _notify(self, record: ScanRecord) -> None:
        if self.on_alert is None:
            return
        try:
            self.on_alert(record)
        except Exception as e:
            logger.error(f"Alert callback failed for {record.id}: {e}")


class PeriodicMonitor(BaseMonitor):
    """A monitor that runs ``tick`` on a jittered interval while armed."""

    def __init__(
        self,
        engine: ScoringEngine,
        thresholds: Thresholds,
        *,
        interval: tuple[float, float] = (5.0, 5.0),
        rng: Optional[random.Random] = None,
        **kwargs,
    ):
        super().__init__(engine, thresholds, **kwargs)
        low, high = interval
        if low <= 0 or high < low:
            raise ValueError(f"invalid interval {low}-{high}")
        self.min_interval = float(low)
        self.max_interval = float(high)
        self._rng = rng or random.Random()
        self._task: Optional[asyncio.Task] = None

    def next_interval(self) -> float:
        if self.max_interval == self.min_interval:
            return self.min_interval
        return self._rng.uniform(self.min_interval, self.max_interval)

    def _start(self) -> None:
        self._task = asyncio.create_task(
            self._run_loop(self._generation), name=f"monitor:{self.monitor_id}"
        )

    async def _stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    def _is_current(self, generation: int) -> bool:
        return self._state.armed and generation == self._generation

    async def _run_loop(self, generation: int) -> None:
        logger.debug(
            "%s loop started (every %.1f-%.1fs)",
            self.monitor_id,
            self.min_interval,
            self.max_interval,
        )
        try:
            while self._is_current(generation):
                await asyncio.sleep(self.next_interval())
                if not self._is_current(generation):
                    break
                try:
                    await self.tick()
                except asyncio.CancelledError:
                    raise
                except PermissionDenied as e:
                    logger.warning("%s lost permission, disarming: %s", self.monitor_id, e)
                    await self.disarm()
                    self._state.last_error = str(e) or "permission denied"
                    break
                except Exception as e:
                    self._state.last_error = str(e)
                    logger.error(f"{self.monitor_id} tick failed: {e}")
        finally:
            logger.debug("%s loop stopped", self.monitor_id)

    async def tick(self) -> Optional[ScanRecord]:
        """Produce, score and record at most one candidate."""
        raise NotImplementedError
