"""On-demand (manual) URL scanner with report enrichment."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from rapidfuzz import fuzz

from ..config import DEFAULT_BRAND_DOMAINS
from ..constants import HIGH_RISK_FROM, LOW_RISK_BELOW, Severity, Surface
from ..engine.extractors import url_candidate
from ..engine.models import Candidate, ScanRecord, Verdict
from ..errors import InvalidCandidate
from ..utils.urls import extract_hostname, is_ip_literal, registered_domain, split_host
from .base import BaseMonitor

logger = logging.getLogger(__name__)

# Fuzzy match floor for brand look-alikes (rapidfuzz ratio, 0-100)
LOOKALIKE_MIN_SIMILARITY = 70.0

# Local threat-intel patterns: substring -> (threat type, severity)
INTEL_PATTERNS: tuple[tuple[str, str, Severity], ...] = (
    ("phishing", "Phishing", Severity.HIGH),
    ("malware", "Malware", Severity.CRITICAL),
    ("spam", "Spam", Severity.MEDIUM),
    ("scam", "Scam", Severity.HIGH),
    ("fake", "Brand Impersonation", Severity.HIGH),
)
INTEL_FEEDS: tuple[str, ...] = (
    "PhishTank",
    "OpenPhish",
    "MalwareDomain List",
    "URLVoid",
    "VirusTotal",
)


def reputation_label(score: int) -> str:
    if score >= HIGH_RISK_FROM:
        return "Malicious"
    if score >= LOW_RISK_BELOW:
        return "Suspicious"
    return "Good"


@dataclass(frozen=True)
class TechnicalAnalysis:
    ssl: bool
    host: str
    registered_domain: str
    ip_literal: bool
    reputation: str


@dataclass(frozen=True)
class LookalikeMatch:
    brand: str
    official_domain: str
    similarity: float


@dataclass(frozen=True)
class FeedMatch:
    pattern: str
    threat_type: str
    severity: Severity
    feeds: tuple[str, ...] = INTEL_FEEDS


@dataclass(frozen=True)
class ScanReport:
    """Everything the manual scan view shows for one URL."""

    candidate: Candidate
    verdict: Verdict
    record: Optional[ScanRecord]
    technical: TechnicalAnalysis
    lookalikes: tuple[LookalikeMatch, ...] = ()
    intel: tuple[FeedMatch, ...] = ()

    @property
    def match_found(self) -> bool:
        return bool(self.lookalikes)

    def to_dict(self) -> dict:
        return {
            "url": self.candidate.display_text,
            "score": self.verdict.score,
            "action": self.verdict.action.value,
            "tags": [str(tag) for tag in self.verdict.matched_tags],
            "reasons": list(self.verdict.reasons),
            "record_id": self.record.id if self.record else None,
            "technical": {
                "ssl": self.technical.ssl,
                "host": self.technical.host,
                "registered_domain": self.technical.registered_domain,
                "ip_literal": self.technical.ip_literal,
                "reputation": self.technical.reputation,
            },
            "lookalikes": [
                {
                    "brand": m.brand,
                    "official_domain": m.official_domain,
                    "similarity": m.similarity,
                }
                for m in self.lookalikes
            ],
            "match_found": self.match_found,
            "intel": [
                {
                    "pattern": m.pattern,
                    "threat_type": m.threat_type,
                    "severity": str(m.severity),
                    "feeds": list(m.feeds),
                }
                for m in self.intel
            ],
        }


def find_lookalikes(
    host: str,
    brand_domains: Mapping[str, Sequence[str]],
    min_similarity: float = LOOKALIKE_MIN_SIMILARITY,
) -> tuple[LookalikeMatch, ...]:
    """Brands whose name the host's domain label contains or closely resembles."""
    if not host or is_ip_literal(host):
        return ()
    _, label, _ = split_host(host)
    if not label:
        return ()
    owner = registered_domain(host)

    matches: list[LookalikeMatch] = []
    for brand, official in brand_domains.items():
        if not official or owner in official:
            continue
        if brand in label:
            similarity = 100.0
        else:
            similarity = round(float(fuzz.ratio(brand, label)), 1)
            if similarity < min_similarity:
                continue
        matches.append(LookalikeMatch(brand=brand, official_domain=official[0], similarity=similarity))

    matches.sort(key=lambda m: (-m.similarity, m.brand))
    return tuple(matches)


def match_intel(url: str) -> tuple[FeedMatch, ...]:
    text = (url or "").lower()
    return tuple(
        FeedMatch(pattern=pattern, threat_type=threat_type, severity=severity)
        for pattern, threat_type, severity in INTEL_PATTERNS
        if pattern in text
    )


class OnDemandScanner(BaseMonitor):
    """
    Scores a user-submitted URL after a short analysis delay.

    The scanner starts armed: it owns no timer or subscription, and every
    scan is an explicit user request. Disarming only stops results from
    being recorded; ``scan`` still answers.
    """

    surface = Surface.MANUAL

    def __init__(
        self,
        engine,
        thresholds,
        *,
        analysis_delay: float = 2.0,
        brand_domains: Optional[Mapping[str, Sequence[str]]] = None,
        **kwargs,
    ):
        super().__init__(engine, thresholds, **kwargs)
        self.analysis_delay = max(0.0, float(analysis_delay))
        self.brand_domains = brand_domains if brand_domains is not None else DEFAULT_BRAND_DOMAINS
        self._mark_armed()

    async def scan(self, url: str) -> ScanReport:
        """Score ``url``. Raises InvalidCandidate for empty input."""
        candidate = url_candidate(url, self.surface.value)
        if not candidate.text:
            raise InvalidCandidate("URL to scan is empty")

        generation = self.generation
        if self.analysis_delay:
            await asyncio.sleep(self.analysis_delay)

        verdict = self.evaluate(candidate)
        record = self.record(candidate, verdict, generation)
        logger.info("Manual scan of %s: %d (%s)", candidate.display_text, verdict.score, verdict.action)
        return ScanReport(
            candidate=candidate,
            verdict=verdict,
            record=record,
            technical=self.technical_analysis(candidate, verdict),
            lookalikes=find_lookalikes(extract_hostname(candidate.text), self.brand_domains),
            intel=match_intel(candidate.text),
        )

    @staticmethod
    def technical_analysis(candidate: Candidate, verdict: Verdict) -> TechnicalAnalysis:
        host = extract_hostname(candidate.text)
        return TechnicalAnalysis(
            ssl=candidate.text.startswith("https://"),
            host=host,
            registered_domain=registered_domain(host) if host else "",
            ip_literal=is_ip_literal(host),
            reputation=reputation_label(verdict.score),
        )
