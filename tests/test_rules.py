"""Tests for the rule catalog."""

import pytest

from phisheye.config import HeuristicsConfig
from phisheye.engine import CandidateKind, Rule, RuleCatalog, RuleCategory, build_default_catalog
from phisheye.engine.rules import MatchSubject, default_catalog


@pytest.fixture
def catalog():
    return build_default_catalog()


def test_default_catalog_is_cached():
    assert default_catalog() is default_catalog()


def test_rules_split_by_kind(catalog):
    url_rules = catalog.for_kind(CandidateKind.URL)
    download_rules = catalog.for_kind(CandidateKind.FILE_DOWNLOAD)
    assert any(r.category is RuleCategory.MALICIOUS_TLD for r in url_rules)
    assert not any(r.category is RuleCategory.MALICIOUS_TLD for r in download_rules)
    assert any(r.category is RuleCategory.EXECUTABLE_EXTENSION for r in download_rules)
    # Shorteners apply to both kinds
    assert any(r.category is RuleCategory.SHORTENER for r in download_rules)


def test_every_category_present(catalog):
    assert set(catalog.categories()) == set(RuleCategory)


def test_by_category_keeps_catalog_order(catalog):
    grouped = catalog.by_category()
    first = next(iter(grouped))
    assert first is catalog.rules[0].category
    assert sum(len(rules) for rules in grouped.values()) == len(catalog)


def test_one_rule_per_keyword(catalog):
    keyword_rules = [r for r in catalog if r.category is RuleCategory.PHISHING_KEYWORD]
    assert len(keyword_rules) == len(HeuristicsConfig().phishing_keywords)
    assert catalog.get("phishing_keyword:verify").weight == 15


def test_get_unknown_rule(catalog):
    assert catalog.get("nope") is None


def test_negative_weight_rejected():
    with pytest.raises(ValueError):
        Rule(id="bad", category=RuleCategory.LONG_URL, weight=-1, predicate=lambda s: 1)


def test_duplicate_ids_rejected():
    rule = Rule(id="dup", category=RuleCategory.LONG_URL, weight=1, predicate=lambda s: 1)
    with pytest.raises(ValueError):
        RuleCatalog([rule, rule])


def test_extended_leaves_original_untouched(catalog):
    extra = Rule(id="extra", category=RuleCategory.LONG_URL, weight=1, predicate=lambda s: 1)
    bigger = catalog.extended(extra)
    assert len(bigger) == len(catalog) + 1
    assert catalog.get("extra") is None


def test_hits_never_negative():
    rule = Rule(id="neg", category=RuleCategory.LONG_URL, weight=1, predicate=lambda s: -3)
    subject = MatchSubject(kind=CandidateKind.URL, text="x")
    assert rule.hits(subject) == 0
    assert not rule.matches(subject)


def test_denylist_entries_become_rules():
    heuristics = HeuristicsConfig()
    heuristics.known_phishing_domains.append("evil-login")
    catalog = build_default_catalog(heuristics)
    assert catalog.get("known_phishing_domain:evil-login") is not None
