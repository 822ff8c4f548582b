"""Demo monitors fed by a synthetic candidate generator.

These stand in for real browser, network and messaging hooks. Every
candidate they produce goes through the same scoring engine as live
input; only the source of the text is made up.
"""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from ..constants import Severity, Surface
from ..engine.models import Candidate, CandidateKind, ScanRecord, utcnow
from .base import PeriodicMonitor

logger = logging.getLogger(__name__)


BACKGROUND_URLS: tuple[str, ...] = (
    "https://secure-bank-login.suspicious-domain.tk",
    "https://paypal-verification.fake-site.ml",
    "https://amazon-prize.scam-alert.ga",
    "https://microsoft-security.phishing.cf",
    "https://google.com",
    "https://github.com",
    "https://stackoverflow.com",
)
BACKGROUND_SOURCES: tuple[str, ...] = ("Browser Tab", "Email Client", "Messaging App", "Social Media")

INTERCEPTOR_URLS: tuple[str, ...] = (
    "https://paypal-security-update.malicious-site.tk/verify",
    "https://amazon-winner.scam-domain.ml/prize",
    "https://microsoft-alert.fake-security.ga/urgent",
    "https://bank-verification.phishing-site.cf/login",
    "https://google.com/search?q=safe+query",
    "https://github.com/user/repository",
    "https://stackoverflow.com/questions/12345",
)
INTERCEPTOR_SOURCES: tuple[str, ...] = (
    "Click",
    "Redirect",
    "Email Link",
    "Social Media",
    "Advertisement",
)


@dataclass(frozen=True)
class AlertTemplate:
    title: str
    message: str
    url: str
    source: str


ALERT_TEMPLATES: tuple[AlertTemplate, ...] = (
    AlertTemplate(
        "Phishing Email Detected",
        "Suspicious email claiming to be from your bank",
        "https://fake-bank-security.malicious.com/login",
        "Email Client",
    ),
    AlertTemplate(
        "Malicious Link in WhatsApp",
        "Suspicious link shared in group chat",
        "https://free-gift-scam.tk/claim",
        "WhatsApp",
    ),
    AlertTemplate(
        "Suspicious Website Warning",
        "Attempting to visit potentially dangerous site",
        "https://paypal-verification.phishing.ml",
        "Browser",
    ),
    AlertTemplate(
        "Social Media Threat",
        "Malicious link detected in Instagram DM",
        "https://instagram-prize.scam.ga",
        "Instagram",
    ),
)


class SyntheticCandidateGenerator:
    """Picks URL candidates from a fixed corpus.

    The channel a URL was "seen" in is carried as the candidate's
    ``aux_text``. URL rules never read it.
    """

    def __init__(
        self,
        urls: Sequence[str],
        sources: Sequence[str],
        surface: Surface,
        rng: Optional[random.Random] = None,
    ):
        if not urls or not sources:
            raise ValueError("synthetic corpus must not be empty")
        self.urls = tuple(urls)
        self.sources = tuple(sources)
        self.surface = surface
        self._rng = rng or random.Random()

    def generate(self) -> Candidate:
        url = self._rng.choice(self.urls)
        source = self._rng.choice(self.sources)
        return Candidate(
            kind=CandidateKind.URL,
            primary_text=url,
            aux_text=source,
            origin_surface=self.surface.value,
        )


class SyntheticMonitor(PeriodicMonitor):
    """Scores one generated candidate per tick."""

    def __init__(self, engine, thresholds, generator: SyntheticCandidateGenerator, **kwargs):
        super().__init__(engine, thresholds, **kwargs)
        self.generator = generator

    async def tick(self) -> Optional[ScanRecord]:
        if not self.armed:
            return None
        generation = self.generation
        candidate = self.generator.generate()
        verdict = self.evaluate(candidate)
        return self.record(candidate, verdict, generation)


class BackgroundScanner(SyntheticMonitor):
    """Continuous scan of URLs seen in tabs, mail and chats."""

    surface = Surface.BACKGROUND

    def __init__(
        self,
        engine,
        thresholds,
        *,
        generator: Optional[SyntheticCandidateGenerator] = None,
        **kwargs,
    ):
        generator = generator or SyntheticCandidateGenerator(
            BACKGROUND_URLS, BACKGROUND_SOURCES, self.surface
        )
        super().__init__(engine, thresholds, generator, **kwargs)


class UrlInterceptor(SyntheticMonitor):
    """Checks links as they are opened; a Block means the visit never happens."""

    surface = Surface.INTERCEPTOR

    def __init__(
        self,
        engine,
        thresholds,
        *,
        generator: Optional[SyntheticCandidateGenerator] = None,
        **kwargs,
    ):
        generator = generator or SyntheticCandidateGenerator(
            INTERCEPTOR_URLS, INTERCEPTOR_SOURCES, self.surface
        )
        super().__init__(engine, thresholds, generator, **kwargs)


@dataclass(frozen=True)
class ThreatAlert:
    """User-facing notification raised for a threatening message or link."""

    id: str
    title: str
    message: str
    url: str
    source: str
    score: int
    severity: Severity
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def actions(self) -> tuple[str, ...]:
        if self.severity >= Severity.HIGH:
            return ("block", "report")
        return ("block", "ignore")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "url": self.url,
            "source": self.source,
            "score": self.score,
            "severity": str(self.severity),
            "actions": list(self.actions),
            "timestamp": self.timestamp.isoformat(),
        }


class AlertGenerator(PeriodicMonitor):
    """Raises alerts for threatening links in incoming messages."""

    surface = Surface.ALERTS

    def __init__(
        self,
        engine,
        thresholds,
        *,
        templates: Sequence[AlertTemplate] = ALERT_TEMPLATES,
        on_notification: Optional[Callable[[ThreatAlert], None]] = None,
        template_rng: Optional[random.Random] = None,
        **kwargs,
    ):
        super().__init__(engine, thresholds, **kwargs)
        if not templates:
            raise ValueError("alert templates must not be empty")
        self.templates = tuple(templates)
        self.on_notification = on_notification
        self._template_rng = template_rng or random.Random()
        self._alerts: deque[ThreatAlert] = deque(maxlen=self._state.history.maxlen)
        self.total_alerts = 0

    @property
    def alerts(self) -> tuple[ThreatAlert, ...]:
        return tuple(self._alerts)

    def dismiss(self, alert_id: str) -> bool:
        for alert in self._alerts:
            if alert.id == alert_id:
                self._alerts.remove(alert)
                return True
        return False

    async def tick(self) -> Optional[ScanRecord]:
        if not self.armed:
            return None
        generation = self.generation
        template = self._template_rng.choice(self.templates)
        candidate = Candidate(
            kind=CandidateKind.URL,
            primary_text=template.url,
            aux_text=template.source,
            origin_surface=self.surface.value,
        )
        verdict = self.evaluate(candidate)
        record = self.record(candidate, verdict, generation)
        if record is None or not verdict.is_threat:
            return record

        alert = ThreatAlert(
            id=record.id,
            title=template.title,
            message=template.message,
            url=template.url,
            source=template.source,
            score=verdict.score,
            severity=Severity.from_score(verdict.score),
            timestamp=record.timestamp,
        )
        self._alerts.appendleft(alert)
        self.total_alerts += 1
        if self.on_notification is not None:
            try:
                self.on_notification(alert)
            except Exception as e:
                logger.error(f"Notification callback failed for {alert.id}: {e}")
        return record
