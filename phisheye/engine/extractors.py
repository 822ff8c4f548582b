"""Candidate extraction from raw inputs (clipboard text, navigation, downloads, speech)."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional
from urllib.parse import unquote, urlparse

from ..constants import Surface
from ..errors import ExtractionMiss
from .models import Candidate, CandidateKind, utcnow

UNKNOWN_EXTENSION = "unknown"

_URL_RE = re.compile(
    r"(https?://[^\s<>\"']+|www\.[^\s<>\"']+)",
    re.IGNORECASE,
)
_BARE_DOMAIN_RE = re.compile(
    r"(https?://[^\s<>\"']+|www\.[^\s<>\"']+|\b[a-z0-9-]+(?:\.[a-z0-9-]+)*\.[a-z]{2,}\b[^\s<>\"']*)",
    re.IGNORECASE,
)
_TRAILING_PUNCT = ").,;:!?'\"]>"


def _normalize_match(raw: str) -> str:
    url = raw.rstrip(_TRAILING_PUNCT)
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def extract_url(text: str, *, allow_bare_domains: bool = False) -> str:
    """
    Return the first URL found in free text.

    http(s):// and www.-prefixed forms are recognized; bare forms are
    prefixed with https://. With ``allow_bare_domains`` plain ``name.tld``
    tokens also count (spoken URLs rarely include a scheme).

    Raises ExtractionMiss when nothing URL-like is present.
    """
    if not text or not text.strip():
        raise ExtractionMiss("no text to extract from")

    pattern = _BARE_DOMAIN_RE if allow_bare_domains else _URL_RE
    for match in pattern.finditer(text):
        url = _normalize_match(match.group(0))
        if len(url) > len("https://"):
            return url
    raise ExtractionMiss("no URL in text")


def file_extension(filename: str) -> str:
    """Lower-cased suffix after the final '.', or 'unknown'."""
    name = (filename or "").strip().lower()
    if "." not in name:
        return UNKNOWN_EXTENSION
    ext = name.rsplit(".", 1)[1]
    return ext or UNKNOWN_EXTENSION


def _filename_from_url(url: str) -> str:
    try:
        path = urlparse(url).path
    except ValueError:
        return ""
    return unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""


def url_candidate(
    text: str,
    origin_surface: str,
    observed_at: Optional[datetime] = None,
) -> Candidate:
    """Wrap a URL string as a Candidate (original case kept for display)."""
    return Candidate(
        kind=CandidateKind.URL,
        primary_text=(text or "").strip(),
        observed_at=observed_at or utcnow(),
        origin_surface=str(origin_surface),
    )


def download_candidate(
    filename: str,
    url: str,
    origin_surface: str,
    observed_at: Optional[datetime] = None,
) -> Candidate:
    """Package a download descriptor as a FILE_DOWNLOAD candidate."""
    name = (filename or "").strip() or _filename_from_url(url or "") or UNKNOWN_EXTENSION
    return Candidate(
        kind=CandidateKind.FILE_DOWNLOAD,
        primary_text=name,
        aux_text=(url or "").strip() or None,
        observed_at=observed_at or utcnow(),
        origin_surface=str(origin_surface),
    )


def candidate_from_text(
    text: str,
    origin_surface: str,
    *,
    allow_bare_domains: bool = False,
    observed_at: Optional[datetime] = None,
) -> Candidate:
    """Extract the first URL from free text and wrap it. Raises ExtractionMiss."""
    url = extract_url(text, allow_bare_domains=allow_bare_domains)
    return url_candidate(url, origin_surface, observed_at=observed_at)


def candidate_from_transcript(transcript: str, observed_at: Optional[datetime] = None) -> Candidate:
    """Voice transcripts: bare domains are accepted."""
    return candidate_from_text(
        transcript, Surface.VOICE.value, allow_bare_domains=True, observed_at=observed_at
    )


def candidate_from_navigation(url: str, observed_at: Optional[datetime] = None) -> Candidate:
    """Navigation targets: first URL in the target string, bare hosts accepted."""
    return candidate_from_text(
        url, Surface.NAVIGATION.value, allow_bare_domains=True, observed_at=observed_at
    )


def same_candidate(previous_text: Optional[str], candidate: Candidate) -> bool:
    """True when the candidate repeats the previously scanned text."""
    if previous_text is None:
        return False
    return previous_text.strip().lower() == candidate.text
