"""Rule catalog, scoring engine and candidate extractors."""

from .extractors import (
    candidate_from_navigation,
    candidate_from_text,
    candidate_from_transcript,
    download_candidate,
    extract_url,
    file_extension,
    same_candidate,
    url_candidate,
)
from .models import (
    Action,
    Candidate,
    CandidateKind,
    RuleCategory,
    ScanRecord,
    Thresholds,
    Verdict,
)
from .rules import Rule, RuleCatalog, build_default_catalog, default_catalog
from .scorer import ScoringEngine, action_for, evaluate

__all__ = [
    "Action",
    "Candidate",
    "CandidateKind",
    "Rule",
    "RuleCatalog",
    "RuleCategory",
    "ScanRecord",
    "ScoringEngine",
    "Thresholds",
    "Verdict",
    "action_for",
    "build_default_catalog",
    "candidate_from_navigation",
    "candidate_from_text",
    "candidate_from_transcript",
    "default_catalog",
    "download_candidate",
    "evaluate",
    "extract_url",
    "file_extension",
    "same_candidate",
    "url_candidate",
]
