"""Monitors: long-lived sources of candidates, each with its own thresholds."""

from .base import BaseMonitor, MonitorState, PeriodicMonitor
from .clipboard import ClipboardMonitor, ClipboardSource
from .events import (
    DownloadEvent,
    DownloadNotifier,
    DownloadProtection,
    EventNotifier,
    NavigationEvent,
    NavigationGuard,
    NavigationNotifier,
)
from .on_demand import OnDemandScanner, ScanReport
from .registry import MonitorRegistry
from .synthetic import (
    AlertGenerator,
    BackgroundScanner,
    SyntheticCandidateGenerator,
    ThreatAlert,
    UrlInterceptor,
)

__all__ = [
    "AlertGenerator",
    "BackgroundScanner",
    "BaseMonitor",
    "ClipboardMonitor",
    "ClipboardSource",
    "DownloadEvent",
    "DownloadNotifier",
    "DownloadProtection",
    "EventNotifier",
    "MonitorRegistry",
    "MonitorState",
    "NavigationEvent",
    "NavigationGuard",
    "NavigationNotifier",
    "OnDemandScanner",
    "PeriodicMonitor",
    "ScanReport",
    "SyntheticCandidateGenerator",
    "ThreatAlert",
    "UrlInterceptor",
]
