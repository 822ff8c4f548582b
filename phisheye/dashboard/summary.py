"""Read-only aggregate statistics over scan records."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..constants import HIGH_RISK_FROM, LOW_RISK_BELOW
from ..engine.models import Action, ScanRecord

RECENT_SCORES = 7


def risk_band(score: int) -> str:
    if score >= HIGH_RISK_FROM:
        return "high"
    if score >= LOW_RISK_BELOW:
        return "medium"
    return "low"


@dataclass(frozen=True)
class DashboardSummary:
    total_scans: int = 0
    threats_detected: int = 0
    clean: int = 0
    average_risk: int = 0
    risk_distribution: dict = field(default_factory=lambda: {"low": 0, "medium": 0, "high": 0})
    by_action: dict = field(default_factory=dict)
    by_surface: dict = field(default_factory=dict)
    top_tags: list = field(default_factory=list)
    recent_scores: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_scans": self.total_scans,
            "threats_detected": self.threats_detected,
            "clean": self.clean,
            "average_risk": self.average_risk,
            "risk_distribution": dict(self.risk_distribution),
            "by_action": dict(self.by_action),
            "by_surface": dict(self.by_surface),
            "top_tags": [{"tag": tag, "count": count} for tag, count in self.top_tags],
            "recent_scores": list(self.recent_scores),
        }


def summarize(records: Iterable[ScanRecord], recent: int = RECENT_SCORES) -> DashboardSummary:
    """
    Summarize records (most recent first, as histories store them).

    Threats are scores strictly above the high-band floor, clean scans are
    those in the low band. The high band itself starts at the floor, so a
    score of exactly 70 is high risk without counting as a threat.
    """
    records = list(records)
    if not records:
        return DashboardSummary(by_action={a.value: 0 for a in Action})

    scores = [r.verdict.score for r in records]
    distribution = Counter(risk_band(score) for score in scores)
    actions = Counter(r.verdict.action.value for r in records)
    surfaces = Counter(r.origin_surface for r in records)
    tags = Counter(str(tag) for r in records for tag in r.verdict.matched_tags)

    return DashboardSummary(
        total_scans=len(records),
        threats_detected=sum(1 for score in scores if score > HIGH_RISK_FROM),
        clean=distribution["low"],
        # Round half up
        average_risk=int(sum(scores) / len(scores) + 0.5),
        risk_distribution={band: distribution[band] for band in ("low", "medium", "high")},
        by_action={a.value: actions[a.value] for a in Action},
        by_surface=dict(surfaces.most_common()),
        top_tags=sorted(tags.items(), key=lambda item: (-item[1], item[0])),
        recent_scores=[
            {
                "id": r.id,
                "text": r.candidate.display_text,
                "score": r.verdict.score,
                "surface": r.origin_surface,
                "timestamp": r.timestamp.isoformat(),
            }
            for r in records[: max(0, recent)]
        ],
    )


def summarize_monitors(states: Mapping[str, object]) -> dict:
    """Per-monitor snapshots keyed by monitor id (history omitted)."""
    summary = {}
    for monitor_id, state in states.items():
        snapshot = state.snapshot()
        snapshot.pop("history", None)
        summary[monitor_id] = snapshot
    return summary
