"""Engine data models."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CandidateKind(str, Enum):
    """What a candidate represents."""

    URL = "url"
    FILE_DOWNLOAD = "file_download"


class RuleCategory(str, Enum):
    """Threat tag emitted when a rule of this category fires."""

    BRAND_SPOOFING = "BrandSpoofing"
    MALICIOUS_TLD = "MaliciousTLD"
    PHISHING_KEYWORD = "PhishingKeyword"
    NO_ENCRYPTION = "NoEncryption"
    SHORTENER = "Shortener"
    EXCESSIVE_SUBDOMAINS = "ExcessiveSubdomains"
    LONG_URL = "LongURL"
    REDIRECT_PATTERN = "RedirectPattern"
    EXECUTABLE_EXTENSION = "ExecutableExtension"
    ARCHIVE_EXTENSION = "ArchiveExtension"
    DOCUMENT_EXTENSION = "DocumentExtension"
    DOUBLE_EXTENSION = "DoubleExtension"
    SUSPICIOUS_FILENAME = "SuspiciousFilename"
    IP_LITERAL_HOST = "IPLiteralHost"
    KNOWN_PHISHING_DOMAIN = "KnownPhishingDomain"

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    """Decision derived from a score and a pair of thresholds."""

    ALLOW = "allow"
    QUARANTINE = "quarantine"
    BLOCK = "block"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Thresholds:
    """Per-surface cut points. Scores at or above a cut point trigger it."""

    quarantine_at: int
    block_at: int

    def __post_init__(self):
        if not (0 <= self.quarantine_at <= self.block_at <= 100):
            raise ValueError(
                "thresholds must satisfy 0 <= quarantine_at <= block_at <= 100 "
                f"(got quarantine_at={self.quarantine_at}, block_at={self.block_at})"
            )


@dataclass(frozen=True)
class Candidate:
    """A unit submitted for scoring."""

    kind: CandidateKind
    primary_text: str
    aux_text: Optional[str] = None
    observed_at: datetime = field(default_factory=utcnow)
    origin_surface: str = "unknown"

    @property
    def text(self) -> str:
        """Lower-cased matching form of the primary text."""
        return (self.primary_text or "").strip().lower()

    @property
    def display_text(self) -> str:
        return (self.primary_text or "").strip()


@dataclass(frozen=True)
class Verdict:
    """Engine output for one candidate."""

    score: int
    matched_tags: tuple[RuleCategory, ...] = ()
    action: Action = Action.ALLOW
    reasons: tuple[str, ...] = ()

    @property
    def is_threat(self) -> bool:
        return self.action is not Action.ALLOW


def _record_id() -> str:
    return secrets.token_hex(6)


@dataclass(frozen=True)
class ScanRecord:
    """An immutable observation: a candidate, its verdict and when it was made."""

    id: str
    candidate: Candidate
    verdict: Verdict
    timestamp: datetime

    @classmethod
    def create(
        cls,
        candidate: Candidate,
        verdict: Verdict,
        timestamp: Optional[datetime] = None,
    ) -> "ScanRecord":
        return cls(
            id=_record_id(),
            candidate=candidate,
            verdict=verdict,
            timestamp=timestamp or utcnow(),
        )

    @property
    def origin_surface(self) -> str:
        return self.candidate.origin_surface

    def to_dict(self) -> dict:
        """Plain-dict form for JSON endpoints and logs."""
        return {
            "id": self.id,
            "kind": self.candidate.kind.value,
            "text": self.candidate.display_text,
            "aux_text": self.candidate.aux_text,
            "origin_surface": self.candidate.origin_surface,
            "score": self.verdict.score,
            "action": self.verdict.action.value,
            "tags": [tag.value for tag in self.verdict.matched_tags],
            "reasons": list(self.verdict.reasons),
            "timestamp": self.timestamp.isoformat(),
        }
