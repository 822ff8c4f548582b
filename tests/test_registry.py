"""Tests for the monitor registry."""

import pytest

from phisheye.engine import Thresholds
from phisheye.errors import PermissionDenied
from phisheye.monitors import (
    ClipboardMonitor,
    MonitorRegistry,
    NavigationEvent,
    NavigationGuard,
    NavigationNotifier,
)


class DeniedClipboard:
    async def ensure_permission(self):
        raise PermissionDenied("denied by user")

    async def read_text(self):
        return ""


@pytest.fixture
def notifier():
    return NavigationNotifier()


@pytest.fixture
def registry(engine, notifier):
    registry = MonitorRegistry()
    registry.register(NavigationGuard(engine, Thresholds(40, 40), notifier))
    registry.register(
        ClipboardMonitor(engine, Thresholds(30, 70), DeniedClipboard(), interval=(60.0, 60.0))
    )
    return registry


def test_duplicate_id_rejected(engine, registry, notifier):
    with pytest.raises(ValueError):
        registry.register(NavigationGuard(engine, Thresholds(40, 40), notifier))


def test_unknown_id(registry):
    with pytest.raises(KeyError):
        registry.get("telepathy")
    assert "telepathy" not in registry
    assert registry.ids() == ["navigation", "clipboard"]


@pytest.mark.asyncio
async def test_arm_and_disarm(registry):
    assert await registry.arm_monitor("navigation") is True
    assert registry.states()["navigation"].armed
    assert await registry.disarm_monitor("navigation") is False
    assert not registry.states()["navigation"].armed


@pytest.mark.asyncio
async def test_permission_failure_reported_as_false(registry):
    assert await registry.arm_monitor("clipboard") is False
    state = registry.states()["clipboard"]
    assert not state.armed
    assert state.last_error == "denied by user"


@pytest.mark.asyncio
async def test_arm_unknown_raises(registry):
    with pytest.raises(KeyError):
        await registry.arm_monitor("telepathy")


@pytest.mark.asyncio
async def test_protection_stats(registry, notifier):
    await registry.arm_monitor("navigation")
    notifier.dispatch(NavigationEvent("http://secure-update.tk"))
    notifier.dispatch(NavigationEvent("https://github.com"))

    stats = registry.protection_stats()
    assert stats["total_threats"] == 1
    assert stats["blocked"] == 1
    assert stats["scan_count"] == 2
    assert stats["armed_monitors"] == 1
    assert stats["monitors"] == 2

    await registry.disarm_all()
    assert registry.protection_stats()["armed_monitors"] == 0
