"""Centralized constants for PhishEye.

Surface names and alert severities shared by the monitors, the
configuration layer and the dashboard.
"""

from enum import Enum, IntEnum


class Surface(str, Enum):
    """Where a candidate was observed. Each surface has its own thresholds."""

    MANUAL = "manual"
    CLIPBOARD = "clipboard"
    NAVIGATION = "navigation"
    DOWNLOAD = "download"
    INTERCEPTOR = "interceptor"
    BACKGROUND = "background"
    ALERTS = "alerts"
    VOICE = "voice"

    def __str__(self) -> str:
        return self.value


class Severity(IntEnum):
    """Alert severity levels with ranking for comparison."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @classmethod
    def from_score(cls, score: int) -> "Severity":
        """Map a 0-100 risk score onto a severity band."""
        if score >= 90:
            return cls.CRITICAL
        if score >= 70:
            return cls.HIGH
        if score >= 40:
            return cls.MEDIUM
        return cls.LOW

    def __str__(self) -> str:
        return self.name.lower()


# Score bands used by the dashboard and the manual-scan reputation label
LOW_RISK_BELOW = 30
HIGH_RISK_FROM = 70
