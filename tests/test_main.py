"""Tests for pipeline wiring."""

import asyncio

import pytest

from phisheye.config import Config
from phisheye.engine import Action
from phisheye.main import PhishEyePipeline
from phisheye.monitors import DownloadEvent, NavigationEvent


class StaticClipboard:
    def __init__(self, text):
        self.text = text

    async def ensure_permission(self):
        return None

    async def read_text(self):
        return self.text


def make_config(tmp_path, **kwargs):
    kwargs.setdefault("health_enabled", False)
    kwargs.setdefault("analysis_delay_seconds", 0)
    return Config(config_dir=tmp_path, **kwargs)


def test_registers_headless_monitors(tmp_path):
    pipeline = PhishEyePipeline(make_config(tmp_path))
    assert pipeline.registry.ids() == [
        "manual",
        "navigation",
        "download",
        "background",
        "interceptor",
        "alerts",
    ]


def test_clipboard_registered_with_source(tmp_path):
    pipeline = PhishEyePipeline(make_config(tmp_path), clipboard_source=StaticClipboard(""))
    assert "clipboard" in pipeline.registry


@pytest.mark.asyncio
async def test_records_reach_global_history(tmp_path):
    pipeline = PhishEyePipeline(make_config(tmp_path))
    await pipeline.registry.arm_monitor("navigation")
    await pipeline.registry.arm_monitor("download")

    assert pipeline.navigation.dispatch(NavigationEvent("http://secure-update.tk")) is False
    assert pipeline.downloads.dispatch(DownloadEvent("invoice.exe")) is False
    report = await pipeline.scanner.scan("https://github.com")
    assert report.verdict.action is Action.ALLOW

    snapshot = pipeline._health_snapshot()
    assert snapshot["history_size"] == 3
    assert snapshot["blocked"] == 2
    assert snapshot["summary"]["total_scans"] == 3
    assert snapshot["summary"]["by_surface"] == {"navigation": 1, "download": 1, "manual": 1}
    assert [r.origin_surface for r in pipeline.history.latest(2)] == ["manual", "download"]

    await pipeline.stop()


@pytest.mark.asyncio
async def test_denylist_file_feeds_engine(tmp_path):
    (tmp_path / "denylist.txt").write_text("totally-legit-bank\n")
    pipeline = PhishEyePipeline(make_config(tmp_path))
    report = await pipeline.scanner.scan("https://totally-legit-bank.example.com")
    assert report.verdict.score == 50
    await pipeline.stop()


@pytest.mark.asyncio
async def test_start_arms_configured_monitors_and_stop_disarms(tmp_path):
    config = make_config(tmp_path, armed_monitors=["navigation", "background", "clipboard"])
    pipeline = PhishEyePipeline(config)

    runner = asyncio.create_task(pipeline.start())
    await asyncio.sleep(0.01)
    assert pipeline.registry.get("navigation").armed
    assert pipeline.registry.get("background").armed

    await pipeline.stop()
    await asyncio.wait_for(runner, timeout=1)
    assert pipeline.registry.protection_stats()["armed_monitors"] == 0
    # Second stop is a no-op
    await pipeline.stop()
