"""Event-driven monitors: navigation and download interception."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from ..constants import Surface
from ..engine.extractors import candidate_from_navigation, download_candidate
from ..engine.models import Action, Candidate
from ..errors import ExtractionMiss, InvalidCandidate
from .base import BaseMonitor

logger = logging.getLogger(__name__)

E = TypeVar("E")
Handler = Callable[[E], bool]


@dataclass(frozen=True)
class NavigationEvent:
    url: str
    source: str = "browser"


@dataclass(frozen=True)
class DownloadEvent:
    filename: str
    url: str = ""


class EventNotifier(Generic[E]):
    """
    Minimal pub/sub for host events.

    Handlers return False to veto the action the event announces.
    ``dispatch`` returns True only if no handler vetoed. A handler that
    raises is logged and does not veto.
    """

    def __init__(self):
        self._handlers: list[Handler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns an idempotent unsubscribe callable."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def dispatch(self, event: E) -> bool:
        proceed = True
        for handler in list(self._handlers):
            try:
                if handler(event) is False:
                    proceed = False
            except Exception as e:
                logger.error(f"Event handler failed for {event!r}: {e}")
        return proceed


class NavigationNotifier(EventNotifier[NavigationEvent]):
    pass


class DownloadNotifier(EventNotifier[DownloadEvent]):
    pass


class EventMonitor(BaseMonitor, Generic[E]):
    """A monitor armed by subscribing to a notifier."""

    def __init__(self, engine, thresholds, notifier: EventNotifier[E], **kwargs):
        super().__init__(engine, thresholds, **kwargs)
        self.notifier = notifier
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _start(self) -> None:
        self._unsubscribe = self.notifier.subscribe(self.handle)

    async def _stop(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    def extract(self, event: E) -> Candidate:
        raise NotImplementedError

    def handle(self, event: E) -> bool:
        """Score the event synchronously. False means block the action.

        The alert callback has already run when this returns False.
        """
        if not self.armed:
            return True
        generation = self.generation
        try:
            candidate = self.extract(event)
        except (ExtractionMiss, InvalidCandidate) as e:
            logger.info("%s: nothing to scan in %r (%s)", self.monitor_id, event, e)
            return True
        verdict = self.evaluate(candidate)
        self.record(candidate, verdict, generation)
        return verdict.action is not Action.BLOCK


class NavigationGuard(EventMonitor[NavigationEvent]):
    """Blocks page loads whose URL scores at or above the block threshold."""

    surface = Surface.NAVIGATION

    def extract(self, event: NavigationEvent) -> Candidate:
        return candidate_from_navigation(event.url)


class DownloadProtection(EventMonitor[DownloadEvent]):
    """Scores downloads by filename and source URL.

    Quarantined downloads still proceed; only a Block vetoes them.
    """

    surface = Surface.DOWNLOAD

    def extract(self, event: DownloadEvent) -> Candidate:
        candidate = download_candidate(event.filename, event.url, self.surface.value)
        if not candidate.text:
            raise InvalidCandidate("download has no filename")
        return candidate
