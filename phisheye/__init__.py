"""PhishEye: heuristic phishing-risk scoring with pluggable monitors."""

__version__ = "0.1.0"
