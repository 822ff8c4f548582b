"""Operational endpoints."""

from .health import HealthServer

__all__ = ["HealthServer"]
