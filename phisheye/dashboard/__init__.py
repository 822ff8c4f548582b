"""Aggregate dashboard statistics."""

from .summary import DashboardSummary, risk_band, summarize, summarize_monitors

__all__ = ["DashboardSummary", "risk_band", "summarize", "summarize_monitors"]
