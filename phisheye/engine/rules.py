"""Rule catalog: weighted, deterministic pattern tests over a candidate."""

from __future__ import annotations

import re
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional

from ..utils.urls import decode_idn, is_ip_literal, normalize_homoglyphs
from .models import CandidateKind, RuleCategory

if TYPE_CHECKING:
    from ..config import HeuristicsConfig

URL_ONLY = frozenset({CandidateKind.URL})
DOWNLOAD_ONLY = frozenset({CandidateKind.FILE_DOWNLOAD})
ANY_KIND = frozenset(CandidateKind)


@dataclass(frozen=True)
class MatchSubject:
    """Lower-cased view of a candidate that rule predicates read.

    For download candidates ``url`` is the source URL (may be empty) and
    ``filename``/``extension`` describe the file.
    """

    kind: CandidateKind
    text: str
    url: str = ""
    host: str = ""
    subdomain_count: int = 0
    registered_domain: str = ""
    filename: str = ""
    extension: str = ""


Predicate = Callable[[MatchSubject], int]


@dataclass(frozen=True)
class Rule:
    """One weighted pattern test. ``predicate`` returns a hit count."""

    id: str
    category: RuleCategory
    weight: int
    predicate: Predicate
    kinds: frozenset = ANY_KIND
    description: str = ""

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"rule {self.id} has negative weight {self.weight}")

    def applies_to(self, kind: CandidateKind) -> bool:
        return kind in self.kinds

    def hits(self, subject: MatchSubject) -> int:
        return max(0, int(self.predicate(subject)))

    def matches(self, subject: MatchSubject) -> bool:
        return self.hits(subject) > 0


class RuleCatalog:
    """Immutable, ordered collection of rules."""

    def __init__(self, rules: Iterable[Rule]):
        self._rules: tuple[Rule, ...] = tuple(rules)
        ids = [r.id for r in self._rules]
        if len(ids) != len(set(ids)):
            raise ValueError("rule ids must be unique")
        self._by_kind = {
            kind: tuple(r for r in self._rules if r.applies_to(kind)) for kind in CandidateKind
        }

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def for_kind(self, kind: CandidateKind) -> tuple[Rule, ...]:
        """Rules evaluated for a candidate kind, in catalog order."""
        return self._by_kind[kind]

    def by_category(self) -> "OrderedDict[RuleCategory, tuple[Rule, ...]]":
        grouped: OrderedDict[RuleCategory, list[Rule]] = OrderedDict()
        for rule in self._rules:
            grouped.setdefault(rule.category, []).append(rule)
        return OrderedDict((cat, tuple(rules)) for cat, rules in grouped.items())

    def categories(self) -> list[RuleCategory]:
        return list(self.by_category().keys())

    def get(self, rule_id: str) -> Optional[Rule]:
        for rule in self._rules:
            if rule.id == rule_id:
                return rule
        return None

    def extended(self, *rules: Rule) -> "RuleCatalog":
        """New catalog with extra rules appended (this one is untouched)."""
        return RuleCatalog(self._rules + tuple(rules))


def _contains_in_url(needle: str) -> Predicate:
    return lambda s: 1 if needle in s.url else 0


_HOST_TOKEN_SEP = re.compile(r"[.-]")


def _brand_in_host(brand: str, official: frozenset, allowlist: frozenset) -> Predicate:
    # Whole host tokens only: "pineapple" and "amazonaws" do not carry a brand
    def predicate(s: MatchSubject) -> int:
        if brand not in _HOST_TOKEN_SEP.split(s.host):
            return 0
        if s.registered_domain in official or s.registered_domain in allowlist:
            return 0
        return 1

    return predicate


def _homoglyph_brand(brands: tuple[str, ...], official: frozenset) -> Predicate:
    def predicate(s: MatchSubject) -> int:
        decoded = decode_idn(s.host)
        if decoded.isascii():
            return 0
        normalized = normalize_homoglyphs(decoded).lower()
        if s.registered_domain in official:
            return 0
        return 1 if any(brand in normalized for brand in brands) else 0

    return predicate


def _host_suffix(tld: str) -> Predicate:
    suffix = f".{tld}"
    return lambda s: 1 if s.host.endswith(suffix) else 0


def _host_is(shortener: str) -> Predicate:
    dotted = f".{shortener}"
    return lambda s: 1 if s.host == shortener or s.host.endswith(dotted) else 0


def _extension_in(extensions: Iterable[str]) -> Predicate:
    allowed = frozenset(e.lstrip(".") for e in extensions)
    return lambda s: 1 if s.extension in allowed else 0


def build_default_catalog(heuristics: Optional[HeuristicsConfig] = None) -> RuleCatalog:
    """Build the rule catalog from heuristics (defaults when omitted)."""
    if heuristics is None:
        from ..config import HeuristicsConfig

        heuristics = HeuristicsConfig()
    h = heuristics
    rules: list[Rule] = []
    allowlist = frozenset(d.lower() for d in h.allowlist)

    for domain in h.known_phishing_domains:
        rules.append(
            Rule(
                id=f"known_phishing_domain:{domain}",
                category=RuleCategory.KNOWN_PHISHING_DOMAIN,
                weight=h.weight("known_phishing_domain"),
                predicate=_contains_in_url(domain),
                kinds=URL_ONLY,
                description=f"Known phishing domain: {domain}",
            )
        )

    for pattern in h.brand_leetspeak:
        rules.append(
            Rule(
                id=f"brand_leetspeak:{pattern}",
                category=RuleCategory.BRAND_SPOOFING,
                weight=h.weight("brand_leetspeak"),
                predicate=_contains_in_url(pattern),
                kinds=URL_ONLY,
                description=f"Brand impersonation via character substitution: '{pattern}'",
            )
        )

    all_official = frozenset(d for domains in h.brand_domains.values() for d in domains)
    for brand, domains in h.brand_domains.items():
        rules.append(
            Rule(
                id=f"brand_in_host:{brand}",
                category=RuleCategory.BRAND_SPOOFING,
                weight=h.weight("brand_in_host"),
                predicate=_brand_in_host(brand, frozenset(domains), allowlist),
                kinds=URL_ONLY,
                description=f"Brand name '{brand}' on a host it does not own",
            )
        )

    rules.append(
        Rule(
            id="brand_homoglyph",
            category=RuleCategory.BRAND_SPOOFING,
            weight=h.weight("brand_homoglyph"),
            predicate=_homoglyph_brand(tuple(h.brand_domains.keys()), all_official | allowlist),
            kinds=URL_ONLY,
            description="IDN homograph of a known brand",
        )
    )

    for tld in h.malicious_tlds:
        rules.append(
            Rule(
                id=f"malicious_tld:{tld}",
                category=RuleCategory.MALICIOUS_TLD,
                weight=h.weight("malicious_tld"),
                predicate=_host_suffix(tld),
                kinds=URL_ONLY,
                description=f"Suspicious domain extension: .{tld}",
            )
        )

    for keyword in h.phishing_keywords:
        rules.append(
            Rule(
                id=f"phishing_keyword:{keyword}",
                category=RuleCategory.PHISHING_KEYWORD,
                weight=h.weight("phishing_keyword"),
                predicate=_contains_in_url(keyword),
                kinds=URL_ONLY,
                description=f"Phishing keyword: '{keyword}'",
            )
        )

    rules.append(
        Rule(
            id="no_encryption:url",
            category=RuleCategory.NO_ENCRYPTION,
            weight=h.weight("no_encryption_url"),
            predicate=lambda s: 0 if s.url.startswith("https://") else 1,
            kinds=URL_ONLY,
            description="No HTTPS encryption",
        )
    )
    rules.append(
        Rule(
            id="no_encryption:download",
            category=RuleCategory.NO_ENCRYPTION,
            weight=h.weight("no_encryption_download"),
            predicate=lambda s: 1 if s.url and not s.url.startswith("https://") else 0,
            kinds=DOWNLOAD_ONLY,
            description="Unencrypted download",
        )
    )

    for shortener in h.shorteners:
        rules.append(
            Rule(
                id=f"shortener:{shortener}",
                category=RuleCategory.SHORTENER,
                weight=h.weight("shortener"),
                predicate=_host_is(shortener),
                kinds=ANY_KIND,
                description=f"URL shortener: {shortener}",
            )
        )

    rules.append(
        Rule(
            id="ip_literal_host",
            category=RuleCategory.IP_LITERAL_HOST,
            weight=h.weight("ip_literal_host"),
            predicate=lambda s: 1 if is_ip_literal(s.host) else 0,
            kinds=URL_ONLY,
            description="IP address used instead of a domain name",
        )
    )

    max_subdomains = h.max_subdomains
    rules.append(
        Rule(
            id="excessive_subdomains",
            category=RuleCategory.EXCESSIVE_SUBDOMAINS,
            weight=h.weight("excessive_subdomains"),
            predicate=lambda s: 1 if s.subdomain_count > max_subdomains else 0,
            kinds=URL_ONLY,
            description=f"More than {max_subdomains} subdomains",
        )
    )

    max_length = h.max_url_length
    rules.append(
        Rule(
            id="long_url",
            category=RuleCategory.LONG_URL,
            weight=h.weight("long_url"),
            predicate=lambda s: 1 if len(s.url) > max_length else 0,
            kinds=URL_ONLY,
            description=f"Unusually long URL (> {max_length} characters)",
        )
    )

    rules.append(
        Rule(
            id="redirect",
            category=RuleCategory.REDIRECT_PATTERN,
            weight=h.weight("redirect"),
            predicate=lambda s: s.url.count("redirect"),
            kinds=URL_ONLY,
            description="Redirect pattern in URL",
        )
    )

    rules.append(
        Rule(
            id="executable_extension",
            category=RuleCategory.EXECUTABLE_EXTENSION,
            weight=h.weight("executable_extension"),
            predicate=_extension_in(h.executable_extensions),
            kinds=DOWNLOAD_ONLY,
            description="Executable file",
        )
    )
    rules.append(
        Rule(
            id="archive_extension",
            category=RuleCategory.ARCHIVE_EXTENSION,
            weight=h.weight("archive_extension"),
            predicate=_extension_in(h.archive_extensions),
            kinds=DOWNLOAD_ONLY,
            description="Archive file",
        )
    )
    rules.append(
        Rule(
            id="document_extension",
            category=RuleCategory.DOCUMENT_EXTENSION,
            weight=h.weight("document_extension"),
            predicate=_extension_in(h.document_extensions),
            kinds=DOWNLOAD_ONLY,
            description="Document that may carry macros",
        )
    )

    for keyword in h.filename_keywords:
        rules.append(
            Rule(
                id=f"suspicious_filename:{keyword}",
                category=RuleCategory.SUSPICIOUS_FILENAME,
                weight=h.weight("suspicious_filename"),
                predicate=(lambda kw: lambda s: 1 if kw in s.filename else 0)(keyword),
                kinds=DOWNLOAD_ONLY,
                description=f"Suspicious filename: '{keyword}'",
            )
        )

    rules.append(
        Rule(
            id="double_extension",
            category=RuleCategory.DOUBLE_EXTENSION,
            weight=h.weight("double_extension"),
            predicate=lambda s: 1 if s.filename.count(".") > 1 else 0,
            kinds=DOWNLOAD_ONLY,
            description="Double extension",
        )
    )

    return RuleCatalog(rules)


_default_catalog: Optional[RuleCatalog] = None


def default_catalog() -> RuleCatalog:
    """Process-wide catalog built from the default heuristics."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = build_default_catalog()
    return _default_catalog
