"""Scan record storage."""

from .history import ScanHistory, ScanRecordSink, publish

__all__ = ["ScanHistory", "ScanRecordSink", "publish"]
