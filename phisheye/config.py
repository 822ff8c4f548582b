"""Configuration management for PhishEye."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Set

import yaml
from dotenv import load_dotenv

from .constants import Surface
from .engine.models import Thresholds
from .utils.urls import canonicalize_domain

logger = logging.getLogger(__name__)


# Default heuristics for the rule catalog. These can be overridden via
# config/heuristics.yaml without touching code.
DEFAULT_KNOWN_PHISHING_DOMAINS: list[str] = [
    "paypal-security-center",
    "paypal-security-update",
    "paypal-verification",
    "secure-bank-login",
    "fake-bank-security",
    "bank-verification",
    "free-gift-scam",
    "amazon-winner",
    "amazon-prize",
    "microsoft-alert",
    "microsoft-security",
    "instagram-prize",
]

DEFAULT_BRAND_LEETSPEAK: list[str] = [
    "payp4l",
    "g00gle",
    "amaz0n",
    "micr0soft",
    "app1e",
    "fac3book",
    "bankofamer1ca",
    "we11sfargo",
    "ch4se",
]

# Brand name -> registrable domains that legitimately carry it
DEFAULT_BRAND_DOMAINS: dict[str, list[str]] = {
    "paypal": ["paypal.com", "paypal.me"],
    "google": ["google.com", "googleusercontent.com", "googleapis.com"],
    "amazon": ["amazon.com", "amazon.co.uk", "amazon.de", "amazon.fr", "amazonaws.com"],
    "microsoft": ["microsoft.com", "microsoftonline.com"],
    "apple": ["apple.com", "icloud.com"],
    "facebook": ["facebook.com", "fb.com"],
    "instagram": ["instagram.com"],
    "netflix": ["netflix.com"],
    "wellsfargo": ["wellsfargo.com"],
    "bankofamerica": ["bankofamerica.com"],
}

DEFAULT_MALICIOUS_TLDS: list[str] = ["tk", "ml", "ga", "cf", "gq"]

DEFAULT_PHISHING_KEYWORDS: list[str] = [
    "verify",
    "urgent",
    "suspended",
    "winner",
    "claim",
    "security-alert",
    "prize",
]

DEFAULT_SHORTENERS: list[str] = [
    "bit.ly",
    "tinyurl.com",
    "t.co",
    "goo.gl",
    "ow.ly",
    "is.gd",
]

DEFAULT_EXECUTABLE_EXTENSIONS: list[str] = ["exe", "scr", "bat", "cmd", "com", "pif", "vbs", "js"]
DEFAULT_ARCHIVE_EXTENSIONS: list[str] = ["zip", "rar", "7z", "jar", "app", "dmg"]
DEFAULT_DOCUMENT_EXTENSIONS: list[str] = ["doc", "docx", "xls", "xlsx", "pdf", "ppt", "pptx"]

DEFAULT_FILENAME_KEYWORDS: list[str] = [
    "invoice",
    "payment",
    "receipt",
    "urgent",
    "security",
    "virus-scan",
    "update",
    "installer",
    "setup",
    "crack",
    "keygen",
    "patch",
]

DEFAULT_WEIGHTS: dict[str, int] = {
    "known_phishing_domain": 50,
    "brand_leetspeak": 30,
    "brand_in_host": 25,
    "brand_homoglyph": 30,
    "malicious_tld": 25,
    "phishing_keyword": 15,
    "no_encryption_url": 20,
    "no_encryption_download": 15,
    "shortener": 10,
    "ip_literal_host": 20,
    "excessive_subdomains": 15,
    "long_url": 10,
    "redirect": 10,
    "executable_extension": 50,
    "archive_extension": 20,
    "document_extension": 5,
    "suspicious_filename": 15,
    "double_extension": 25,
}

# Per-surface cut points. Surfaces keep their own numbers.
DEFAULT_SURFACE_THRESHOLDS: dict[str, Thresholds] = {
    Surface.MANUAL.value: Thresholds(quarantine_at=30, block_at=70),
    Surface.CLIPBOARD.value: Thresholds(quarantine_at=30, block_at=70),
    Surface.VOICE.value: Thresholds(quarantine_at=30, block_at=70),
    Surface.NAVIGATION.value: Thresholds(quarantine_at=40, block_at=40),
    Surface.DOWNLOAD.value: Thresholds(quarantine_at=30, block_at=60),
    Surface.INTERCEPTOR.value: Thresholds(quarantine_at=50, block_at=50),
    Surface.BACKGROUND.value: Thresholds(quarantine_at=40, block_at=70),
    Surface.ALERTS.value: Thresholds(quarantine_at=40, block_at=70),
}

# (min_seconds, max_seconds) between ticks of the periodic monitors
DEFAULT_INTERVALS: dict[str, tuple[float, float]] = {
    Surface.CLIPBOARD.value: (1.5, 15.0),
    Surface.BACKGROUND.value: (8.0, 15.0),
    Surface.INTERCEPTOR.value: (10.0, 20.0),
    Surface.ALERTS.value: (15.0, 30.0),
}


@dataclass
class HeuristicsConfig:
    """Weight tables and pattern lists the rule catalog is built from."""

    known_phishing_domains: list[str] = field(
        default_factory=lambda: list(DEFAULT_KNOWN_PHISHING_DOMAINS)
    )
    brand_leetspeak: list[str] = field(default_factory=lambda: list(DEFAULT_BRAND_LEETSPEAK))
    brand_domains: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_BRAND_DOMAINS.items()}
    )
    malicious_tlds: list[str] = field(default_factory=lambda: list(DEFAULT_MALICIOUS_TLDS))
    phishing_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_PHISHING_KEYWORDS))
    shorteners: list[str] = field(default_factory=lambda: list(DEFAULT_SHORTENERS))
    executable_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXECUTABLE_EXTENSIONS)
    )
    archive_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_ARCHIVE_EXTENSIONS))
    document_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_DOCUMENT_EXTENSIONS)
    )
    filename_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_FILENAME_KEYWORDS))
    weights: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    max_subdomains: int = 4
    max_url_length: int = 150
    # Registrable domains that never count as brand impersonation
    allowlist: Set[str] = field(default_factory=set)

    def weight(self, key: str) -> int:
        return int(self.weights.get(key, DEFAULT_WEIGHTS[key]))


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Health/metrics endpoint (optional)
    health_host: str = "127.0.0.1"
    health_port: int = 8081
    health_enabled: bool = True

    # History sizes
    history_capacity: int = 500
    monitor_history_capacity: int = 10

    # Monitors armed at start-up (names from Surface)
    armed_monitors: list[str] = field(default_factory=list)

    # Simulated delay of the on-demand scanner
    analysis_delay_seconds: float = 2.0

    log_level: str = "INFO"

    config_dir: Path = field(default_factory=lambda: Path("./config"))

    # Loaded lists
    allowlist: Set[str] = field(default_factory=set)
    denylist: Set[str] = field(default_factory=set)

    heuristics: HeuristicsConfig = field(default_factory=HeuristicsConfig)
    thresholds: dict[str, Thresholds] = field(
        default_factory=lambda: dict(DEFAULT_SURFACE_THRESHOLDS)
    )
    intervals: dict[str, tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_INTERVALS)
    )

    def __post_init__(self):
        """Load lists and fold them into the heuristics."""
        self.config_dir = Path(self.config_dir)
        self._load_lists()

        if self.denylist:
            merged = list(self.heuristics.known_phishing_domains)
            merged.extend(sorted(d for d in self.denylist if d not in merged))
            self.heuristics.known_phishing_domains = merged
        if self.allowlist:
            self.heuristics.allowlist = set(self.heuristics.allowlist) | set(self.allowlist)

    def _load_lists(self):
        """Load allowlist and denylist from config files."""
        allowlist_path = self.config_dir / "allowlist.txt"
        denylist_path = self.config_dir / "denylist.txt"

        if allowlist_path.exists():
            raw_allowlist = self._load_list_file(allowlist_path)
            self.allowlist = set(self.allowlist) | {
                canonicalize_domain(item) or item for item in raw_allowlist
            }
        if denylist_path.exists():
            raw_denylist = self._load_list_file(denylist_path)
            self.denylist = set(self.denylist) | {
                canonicalize_domain(item) or item for item in raw_denylist
            }

    @staticmethod
    def _load_list_file(path: Path) -> Set[str]:
        """Load a list file, ignoring comments and empty lines."""
        items = set()
        with open(path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    items.add(line.lower())
        return items

    def thresholds_for(self, surface: str) -> Thresholds:
        """Thresholds for a surface, falling back to the manual-scan cut points."""
        key = str(surface)
        if key in self.thresholds:
            return self.thresholds[key]
        return DEFAULT_SURFACE_THRESHOLDS.get(key, DEFAULT_SURFACE_THRESHOLDS[Surface.MANUAL.value])

    def interval_for(self, surface: str) -> tuple[float, float]:
        key = str(surface)
        return self.intervals.get(key) or DEFAULT_INTERVALS.get(key, (5.0, 5.0))


def _load_heuristics(config_dir: Path) -> dict:
    """Load heuristic overrides from config/heuristics.yaml (optional)."""
    path = Path(config_dir or ".") / "heuristics.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse heuristics.yaml: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring heuristics.yaml: top level must be a mapping")
        return {}

    def _coerce_str_list(raw, default):
        if not isinstance(raw, (list, tuple)):
            return default
        items = [str(item).strip().lower() for item in raw if str(item or "").strip()]
        # Rule ids are derived from entries, so duplicates are dropped
        return list(dict.fromkeys(items)) or default

    def _coerce_weights(raw):
        weights = dict(DEFAULT_WEIGHTS)
        for key, value in (raw or {}).items() if isinstance(raw, dict) else ():
            if key not in DEFAULT_WEIGHTS:
                logger.warning("Unknown rule weight %r in heuristics.yaml; ignoring", key)
                continue
            try:
                points = int(value)
            except (TypeError, ValueError):
                logger.warning("Invalid weight for %s: %r", key, value)
                continue
            if points < 0:
                logger.warning("Negative weight for %s ignored: %s", key, points)
                continue
            weights[key] = points
        return weights

    def _coerce_brand_domains(raw, default):
        if not isinstance(raw, dict):
            return default
        brands: dict[str, list[str]] = {}
        for brand, domains in raw.items():
            name = str(brand or "").strip().lower()
            if not name:
                continue
            if isinstance(domains, str):
                domains = [domains]
            brands[name] = [str(d).strip().lower() for d in domains or [] if str(d).strip()]
        return brands or default

    def _coerce_int(raw, default):
        try:
            return int(raw) if raw is not None else default
        except (TypeError, ValueError):
            return default

    def _coerce_thresholds(raw):
        thresholds: dict[str, Thresholds] = {}
        for surface, entry in (raw or {}).items() if isinstance(raw, dict) else ():
            if not isinstance(entry, dict):
                continue
            try:
                thresholds[str(surface)] = Thresholds(
                    quarantine_at=int(entry.get("quarantine_at")),
                    block_at=int(entry.get("block_at")),
                )
            except (TypeError, ValueError) as exc:
                logger.warning("Invalid thresholds for %s: %s", surface, exc)
        return thresholds

    def _coerce_intervals(raw):
        intervals: dict[str, tuple[float, float]] = {}
        for surface, entry in (raw or {}).items() if isinstance(raw, dict) else ():
            try:
                if isinstance(entry, dict):
                    low = float(entry.get("min_seconds"))
                    high = float(entry.get("max_seconds", low))
                elif isinstance(entry, (list, tuple)) and len(entry) == 2:
                    low, high = float(entry[0]), float(entry[1])
                else:
                    low = high = float(entry)
            except (TypeError, ValueError):
                logger.warning("Invalid interval for %s: %r", surface, entry)
                continue
            if low <= 0 or high < low:
                logger.warning("Ignoring interval for %s: %s-%s", surface, low, high)
                continue
            intervals[str(surface)] = (low, high)
        return intervals

    url_cfg = data.get("url", {}) if isinstance(data.get("url"), dict) else {}
    download_cfg = data.get("download", {}) if isinstance(data.get("download"), dict) else {}

    heuristics = HeuristicsConfig(
        known_phishing_domains=_coerce_str_list(
            url_cfg.get("known_phishing_domains"), list(DEFAULT_KNOWN_PHISHING_DOMAINS)
        ),
        brand_leetspeak=_coerce_str_list(url_cfg.get("brand_leetspeak"), list(DEFAULT_BRAND_LEETSPEAK)),
        brand_domains=_coerce_brand_domains(
            url_cfg.get("brand_domains"),
            {k: list(v) for k, v in DEFAULT_BRAND_DOMAINS.items()},
        ),
        malicious_tlds=list(
            dict.fromkeys(
                t.lstrip(".")
                for t in _coerce_str_list(url_cfg.get("malicious_tlds"), list(DEFAULT_MALICIOUS_TLDS))
            )
        ),
        phishing_keywords=_coerce_str_list(url_cfg.get("phishing_keywords"), list(DEFAULT_PHISHING_KEYWORDS)),
        shorteners=_coerce_str_list(url_cfg.get("shorteners"), list(DEFAULT_SHORTENERS)),
        executable_extensions=_coerce_str_list(
            download_cfg.get("executable_extensions"), list(DEFAULT_EXECUTABLE_EXTENSIONS)
        ),
        archive_extensions=_coerce_str_list(
            download_cfg.get("archive_extensions"), list(DEFAULT_ARCHIVE_EXTENSIONS)
        ),
        document_extensions=_coerce_str_list(
            download_cfg.get("document_extensions"), list(DEFAULT_DOCUMENT_EXTENSIONS)
        ),
        filename_keywords=_coerce_str_list(
            download_cfg.get("filename_keywords"), list(DEFAULT_FILENAME_KEYWORDS)
        ),
        weights=_coerce_weights(data.get("weights")),
        max_subdomains=_coerce_int(url_cfg.get("max_subdomains"), 4),
        max_url_length=_coerce_int(url_cfg.get("max_url_length"), 150),
    )

    return {
        "heuristics": heuristics,
        "thresholds": _coerce_thresholds(data.get("thresholds")),
        "intervals": _coerce_intervals(data.get("intervals")),
    }


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    overrides = _load_heuristics(config_dir)

    thresholds = dict(DEFAULT_SURFACE_THRESHOLDS)
    thresholds.update(overrides.get("thresholds") or {})
    intervals = dict(DEFAULT_INTERVALS)
    intervals.update(overrides.get("intervals") or {})

    armed_str = os.getenv("ARMED_MONITORS", "")
    armed_monitors = [m.strip().lower() for m in armed_str.split(",") if m.strip()]

    return Config(
        health_host=os.getenv("HEALTH_HOST", "127.0.0.1"),
        health_port=int(os.getenv("HEALTH_PORT", "8081")),
        health_enabled=_env_bool("HEALTH_ENABLED", "true"),
        history_capacity=int(os.getenv("HISTORY_CAPACITY", "500")),
        monitor_history_capacity=int(os.getenv("MONITOR_HISTORY_CAPACITY", "10")),
        armed_monitors=armed_monitors,
        analysis_delay_seconds=float(os.getenv("ANALYSIS_DELAY_SECONDS", "2.0")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        config_dir=config_dir,
        heuristics=overrides.get("heuristics") or HeuristicsConfig(),
        thresholds=thresholds,
        intervals=intervals,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    if not (0 < config.health_port < 65536):
        errors.append(f"HEALTH_PORT out of range: {config.health_port}")
    if config.history_capacity < 1:
        errors.append("HISTORY_CAPACITY must be at least 1")
    if config.monitor_history_capacity < 1:
        errors.append("MONITOR_HISTORY_CAPACITY must be at least 1")
    if config.analysis_delay_seconds < 0:
        errors.append("ANALYSIS_DELAY_SECONDS must not be negative")

    known = {s.value for s in Surface}
    for name in config.armed_monitors:
        if name not in known:
            errors.append(f"Unknown monitor in ARMED_MONITORS: {name}")

    for surface, (low, high) in config.intervals.items():
        if low <= 0 or high < low:
            errors.append(f"Invalid interval for {surface}: {low}-{high}")

    if logging.getLevelName(config.log_level) == f"Level {config.log_level}":
        errors.append(f"Unknown LOG_LEVEL: {config.log_level}")

    return errors
