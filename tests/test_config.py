"""Tests for configuration loading."""

import pytest

from phisheye.config import Config, load_config, validate_config
from phisheye.engine import Thresholds


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in (
        "HEALTH_HOST",
        "HEALTH_PORT",
        "HEALTH_ENABLED",
        "HISTORY_CAPACITY",
        "MONITOR_HISTORY_CAPACITY",
        "ARMED_MONITORS",
        "ANALYSIS_DELAY_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults(clean_env):
    config = load_config()
    assert config.health_port == 8081
    assert config.armed_monitors == []
    assert config.thresholds_for("navigation") == Thresholds(40, 40)
    assert config.thresholds_for("download") == Thresholds(30, 60)
    assert config.interval_for("background") == (8.0, 15.0)
    assert validate_config(config) == []


def test_unknown_surface_falls_back_to_manual(tmp_path):
    config = Config(config_dir=tmp_path)
    assert config.thresholds_for("somewhere") == Thresholds(30, 70)


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("ARMED_MONITORS", "Clipboard, navigation,")
    monkeypatch.setenv("HEALTH_ENABLED", "false")
    monkeypatch.setenv("ANALYSIS_DELAY_SECONDS", "0.5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = load_config()
    assert config.armed_monitors == ["clipboard", "navigation"]
    assert config.health_enabled is False
    assert config.analysis_delay_seconds == 0.5
    assert config.log_level == "DEBUG"


def test_heuristics_yaml(clean_env):
    (clean_env / "heuristics.yaml").write_text(
        "weights:\n"
        "  malicious_tld: 40\n"
        "  made_up_rule: 9\n"
        "  phishing_keyword: -5\n"
        "url:\n"
        "  malicious_tlds: ['.xyz', 'tk', 'tk']\n"
        "thresholds:\n"
        "  navigation: {quarantine_at: 50, block_at: 80}\n"
        "  download: {quarantine_at: 90, block_at: 10}\n"
    )
    config = load_config()

    assert config.heuristics.weight("malicious_tld") == 40
    assert config.heuristics.weight("phishing_keyword") == 15
    assert config.heuristics.malicious_tlds == ["xyz", "tk"]
    assert config.thresholds_for("navigation") == Thresholds(50, 80)
    # Inverted cut points are ignored
    assert config.thresholds_for("download") == Thresholds(30, 60)


def test_intervals_from_yaml(clean_env):
    (clean_env / "heuristics.yaml").write_text(
        "intervals:\n"
        "  clipboard: [2, 4]\n"
        "  background: {min_seconds: 1, max_seconds: 3}\n"
        "  alerts: 5\n"
        "  interceptor: [9, 3]\n"
        "  voice: nonsense\n"
    )
    config = load_config()

    assert config.interval_for("clipboard") == (2.0, 4.0)
    assert config.interval_for("background") == (1.0, 3.0)
    assert config.interval_for("alerts") == (5.0, 5.0)
    # Inverted and unparsable entries keep the defaults
    assert config.interval_for("interceptor") == (10.0, 20.0)
    assert "voice" not in config.intervals
    assert validate_config(config) == []


def test_broken_yaml_is_ignored(clean_env):
    (clean_env / "heuristics.yaml").write_text("weights: [unclosed\n")
    config = load_config()
    assert config.heuristics.weight("malicious_tld") == 25


def test_list_files(tmp_path):
    (tmp_path / "denylist.txt").write_text("# known bad\nEvil-Login\n\n")
    (tmp_path / "allowlist.txt").write_text("https://www.paypal-partner.com/\n")

    config = Config(config_dir=tmp_path)
    assert "evil-login" in config.denylist
    assert "evil-login" in config.heuristics.known_phishing_domains
    assert "paypal-partner.com" in config.heuristics.allowlist


def test_validate_config(tmp_path):
    config = Config(
        config_dir=tmp_path,
        health_port=0,
        history_capacity=0,
        armed_monitors=["telepathy"],
        analysis_delay_seconds=-1,
        log_level="CHATTY",
    )
    config.intervals["clipboard"] = (5.0, 1.0)

    errors = validate_config(config)
    assert any("HEALTH_PORT" in e for e in errors)
    assert any("HISTORY_CAPACITY" in e for e in errors)
    assert any("telepathy" in e for e in errors)
    assert any("ANALYSIS_DELAY_SECONDS" in e for e in errors)
    assert any("LOG_LEVEL" in e for e in errors)
    assert any("clipboard" in e for e in errors)
