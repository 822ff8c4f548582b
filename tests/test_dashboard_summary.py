"""Tests for dashboard aggregation."""

from phisheye.dashboard import risk_band, summarize, summarize_monitors
from phisheye.engine import Action, Candidate, CandidateKind, RuleCategory, ScanRecord, Verdict
from phisheye.monitors.base import MonitorState
from phisheye.storage import ScanHistory


def make_record(score, action, surface="manual", tags=()):
    candidate = Candidate(
        kind=CandidateKind.URL,
        primary_text=f"https://example{score}.com",
        origin_surface=surface,
    )
    return ScanRecord.create(candidate, Verdict(score=score, matched_tags=tags, action=action))


def test_empty():
    summary = summarize([])
    assert summary.total_scans == 0
    assert summary.average_risk == 0
    assert summary.by_action == {"allow": 0, "quarantine": 0, "block": 0}
    assert summary.recent_scores == []


def test_counts_and_bands():
    records = [
        make_record(80, Action.BLOCK, "clipboard", (RuleCategory.MALICIOUS_TLD,)),
        make_record(50, Action.QUARANTINE, "navigation", (RuleCategory.MALICIOUS_TLD,)),
        make_record(10, Action.ALLOW, "navigation", (RuleCategory.SHORTENER,)),
        make_record(0, Action.ALLOW),
    ]
    summary = summarize(records)

    assert summary.total_scans == 4
    assert summary.threats_detected == 1
    assert summary.clean == 2
    assert summary.average_risk == 35
    assert summary.risk_distribution == {"low": 2, "medium": 1, "high": 1}
    assert summary.by_action == {"allow": 2, "quarantine": 1, "block": 1}
    assert summary.by_surface == {"navigation": 2, "clipboard": 1, "manual": 1}
    assert summary.top_tags[0] == ("MaliciousTLD", 2)


def test_threshold_score_is_high_risk_but_not_a_threat():
    summary = summarize([make_record(70, Action.BLOCK), make_record(71, Action.BLOCK)])
    assert summary.risk_distribution["high"] == 2
    assert summary.threats_detected == 1


def test_average_rounds_half_up():
    records = [make_record(1, Action.ALLOW), make_record(2, Action.ALLOW)]
    assert summarize(records).average_risk == 2


def test_recent_scores_are_newest_first_and_limited():
    history = ScanHistory(capacity=20)
    for score in range(10):
        history.append(make_record(score, Action.ALLOW))

    recent = summarize(history.snapshot()).recent_scores
    assert len(recent) == 7
    assert [item["score"] for item in recent] == [9, 8, 7, 6, 5, 4, 3]


def test_band_edges():
    assert risk_band(29) == "low"
    assert risk_band(30) == "medium"
    assert risk_band(69) == "medium"
    assert risk_band(70) == "high"


def test_to_dict():
    data = summarize([make_record(90, Action.BLOCK, tags=(RuleCategory.LONG_URL,))]).to_dict()
    assert data["top_tags"] == [{"tag": "LongURL", "count": 1}]
    assert data["recent_scores"][0]["score"] == 90


def test_summarize_monitors_drops_history():
    state = MonitorState("clipboard")
    state.history.appendleft(make_record(10, Action.ALLOW))
    state.count(Action.ALLOW)

    summary = summarize_monitors({"clipboard": state})
    assert "history" not in summary["clipboard"]
    assert summary["clipboard"]["scans_performed"] == 1
