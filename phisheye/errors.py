"""Exception types shared across PhishEye."""

from __future__ import annotations


class PhishEyeError(Exception):
    """Base class for PhishEye errors."""


class InvalidCandidate(PhishEyeError, ValueError):
    """Raised when a candidate cannot be scored (e.g. empty text)."""


class PermissionDenied(PhishEyeError):
    """Raised when a text or notification source refuses access."""


class ExtractionMiss(PhishEyeError, LookupError):
    """No candidate could be pulled out of the input. Not a failure."""
