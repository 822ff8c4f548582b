"""Threat scoring against the rule catalog."""

from __future__ import annotations

from typing import Optional

from ..errors import InvalidCandidate
from ..utils.urls import extract_hostname, registered_domain, subdomain_count
from .extractors import file_extension
from .models import Action, Candidate, CandidateKind, RuleCategory, Thresholds, Verdict
from .rules import MatchSubject, RuleCatalog, default_catalog

MAX_SCORE = 100


def clamp_score(total: int) -> int:
    return max(0, min(total, MAX_SCORE))


def action_for(score: int, thresholds: Thresholds) -> Action:
    """Map a score onto an action. Pure: depends on nothing else."""
    if score >= thresholds.block_at:
        return Action.BLOCK
    if score >= thresholds.quarantine_at:
        return Action.QUARANTINE
    return Action.ALLOW


def build_subject(candidate: Candidate) -> MatchSubject:
    """Precompute the lower-cased fields rule predicates read."""
    text = candidate.text
    if candidate.kind is CandidateKind.FILE_DOWNLOAD:
        url = (candidate.aux_text or "").strip().lower()
        filename = text
        extension = file_extension(filename)
    else:
        url = text
        filename = ""
        extension = ""

    host = extract_hostname(url) if url else ""
    return MatchSubject(
        kind=candidate.kind,
        text=text,
        url=url,
        host=host,
        subdomain_count=subdomain_count(host),
        registered_domain=registered_domain(host) if host else "",
        filename=filename,
        extension=extension,
    )


class ScoringEngine:
    """Evaluates candidates against a rule catalog.

    Evaluation is a pure function of (candidate, thresholds, catalog): the
    engine keeps no counters and performs no I/O, so identical inputs always
    give identical verdicts.
    """

    def __init__(self, catalog: Optional[RuleCatalog] = None):
        self.catalog = catalog or default_catalog()

    def evaluate(self, candidate: Candidate, thresholds: Thresholds) -> Verdict:
        """Score a candidate and derive its action."""
        if candidate is None or not candidate.text:
            raise InvalidCandidate("candidate primary text is empty")

        subject = build_subject(candidate)
        total = 0
        tags: list[RuleCategory] = []
        reasons: list[str] = []

        for rule in self.catalog.for_kind(candidate.kind):
            hits = rule.hits(subject)
            for _ in range(hits):
                total += rule.weight
                tags.append(rule.category)
                reasons.append(rule.description or rule.id)

        score = clamp_score(total)
        return Verdict(
            score=score,
            matched_tags=tuple(tags),
            action=action_for(score, thresholds),
            reasons=tuple(reasons),
        )


def evaluate(candidate: Candidate, thresholds: Thresholds) -> Verdict:
    """Evaluate with the process-wide default catalog."""
    return ScoringEngine().evaluate(candidate, thresholds)
