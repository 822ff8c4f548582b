"""URL and host normalization utilities."""

from __future__ import annotations

import ipaddress
import unicodedata
from urllib.parse import urlparse

import idna
import tldextract

# Offline extractor: use the bundled public suffix snapshot instead of fetching it.
_extract = tldextract.TLDExtract(suffix_list_urls=())

# Cyrillic/Armenian characters that look like Latin
HOMOGLYPHS = {
    "а": "a",  # Cyrillic а
    "е": "e",  # Cyrillic е
    "о": "o",  # Cyrillic о
    "р": "p",  # Cyrillic р
    "с": "c",  # Cyrillic с
    "у": "y",  # Cyrillic у
    "х": "x",  # Cyrillic х
    "ѕ": "s",  # Cyrillic ѕ
    "і": "i",  # Cyrillic і
    "ј": "j",  # Cyrillic ј
    "ԁ": "d",  # Cyrillic ԁ
    "ɡ": "g",  # Latin script g
    "ո": "n",  # Armenian ո
    "ս": "u",  # Armenian ս
}


def ensure_url(value: str) -> str:
    """Prefix bare hosts with https:// so they parse as URLs."""
    raw = (value or "").strip()
    if not raw:
        return ""
    if "://" in raw:
        return raw
    return f"https://{raw}"


def extract_hostname(value: str) -> str:
    """
    Return the lower-cased hostname of a URL (or bare host).

    Port, path, query and fragment are dropped. Malformed input yields "".
    """
    candidate = ensure_url(value)
    if not candidate:
        return ""
    try:
        parsed = urlparse(candidate)
        host = parsed.hostname or ""
    except ValueError:
        return ""
    return host.strip().lower().strip(".")


def canonicalize_domain(value: str) -> str:
    """
    Normalize a domain/URL to a canonical host key.

    - Lowercase
    - Strip leading "www."
    - Ignore port/path/query/fragment
    """
    host = extract_hostname(value)
    if host.startswith("www.") and len(host) > 4:
        host = host[4:]
    return host


def is_ip_literal(host: str) -> bool:
    """True when the host is an IPv4/IPv6 address rather than a name."""
    if not host:
        return False
    try:
        ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return False
    return True


def split_host(host: str) -> tuple[str, str, str]:
    """Split a host into (subdomain, domain, suffix)."""
    if not host or is_ip_literal(host):
        return "", host or "", ""
    extracted = _extract(host)
    return extracted.subdomain.lower(), extracted.domain.lower(), extracted.suffix.lower()


def registered_domain(value: str) -> str:
    """Return the registrable domain for a host or URL (best-effort)."""
    host = canonicalize_domain(value)
    if not host:
        return ""
    _, domain, suffix = split_host(host)
    if domain and suffix:
        return f"{domain}.{suffix}"
    return host


def subdomain_count(host: str) -> int:
    subdomain, _, _ = split_host(host)
    if not subdomain:
        return 0
    return len([label for label in subdomain.split(".") if label])


def decode_idn(host: str) -> str:
    """Decode punycode (xn--) hosts to Unicode; returns the input on failure."""
    if "xn--" not in (host or ""):
        return host
    try:
        decoded = idna.decode(host)
    except (idna.IDNAError, UnicodeError, ValueError):
        return host
    return decoded or host


def normalize_homoglyphs(text: str) -> str:
    """Replace homoglyphs with their Latin equivalents."""
    result = []
    for char in text:
        if char in HOMOGLYPHS:
            result.append(HOMOGLYPHS[char])
        else:
            # NFKC folds most remaining compatibility lookalikes
            result.append(unicodedata.normalize("NFKC", char))
    return "".join(result)
