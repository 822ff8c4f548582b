"""Main entry point for the PhishEye protection service."""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

from .config import Config, load_config, validate_config
from .constants import Surface
from .dashboard.summary import summarize
from .engine import ScanRecord, ScoringEngine, build_default_catalog
from .monitoring.health import HealthServer
from .monitors import (
    AlertGenerator,
    BackgroundScanner,
    ClipboardMonitor,
    ClipboardSource,
    DownloadNotifier,
    DownloadProtection,
    MonitorRegistry,
    NavigationGuard,
    NavigationNotifier,
    OnDemandScanner,
    ThreatAlert,
    UrlInterceptor,
)
from .storage import ScanHistory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)


class PhishEyePipeline:
    """Wires the engine, the monitors, the global history and the health endpoint."""

    def __init__(
        self,
        config: Config,
        clipboard_source: Optional[ClipboardSource] = None,
        navigation: Optional[NavigationNotifier] = None,
        downloads: Optional[DownloadNotifier] = None,
    ):
        self.config = config
        self._started_at = datetime.now(timezone.utc)
        self._stop_event = asyncio.Event()
        self._stop_lock = asyncio.Lock()
        self._stopped = False

        self.catalog = build_default_catalog(config.heuristics)
        self.engine = ScoringEngine(self.catalog)
        self.history = ScanHistory(config.history_capacity)
        self.navigation = navigation or NavigationNotifier()
        self.downloads = downloads or DownloadNotifier()
        self.registry = MonitorRegistry()

        common = {
            "sinks": [self.history],
            "history_capacity": config.monitor_history_capacity,
            "on_alert": self._log_alert,
        }
        self.scanner = self.registry.register(
            OnDemandScanner(
                self.engine,
                config.thresholds_for(Surface.MANUAL),
                analysis_delay=config.analysis_delay_seconds,
                brand_domains=config.heuristics.brand_domains,
                **common,
            )
        )
        if clipboard_source is not None:
            self.registry.register(
                ClipboardMonitor(
                    self.engine,
                    config.thresholds_for(Surface.CLIPBOARD),
                    clipboard_source,
                    interval=config.interval_for(Surface.CLIPBOARD),
                    **common,
                )
            )
        self.registry.register(
            NavigationGuard(
                self.engine, config.thresholds_for(Surface.NAVIGATION), self.navigation, **common
            )
        )
        self.registry.register(
            DownloadProtection(
                self.engine, config.thresholds_for(Surface.DOWNLOAD), self.downloads, **common
            )
        )
        self.registry.register(
            BackgroundScanner(
                self.engine,
                config.thresholds_for(Surface.BACKGROUND),
                interval=config.interval_for(Surface.BACKGROUND),
                **common,
            )
        )
        self.registry.register(
            UrlInterceptor(
                self.engine,
                config.thresholds_for(Surface.INTERCEPTOR),
                interval=config.interval_for(Surface.INTERCEPTOR),
                **common,
            )
        )
        self.alerts = self.registry.register(
            AlertGenerator(
                self.engine,
                config.thresholds_for(Surface.ALERTS),
                interval=config.interval_for(Surface.ALERTS),
                on_notification=self._log_notification,
                **common,
            )
        )

        self.health_server = HealthServer(
            host=config.health_host,
            port=config.health_port,
            status_provider=self._health_snapshot,
            registry=self.registry,
            enabled=config.health_enabled,
        )

    def _log_alert(self, record: ScanRecord) -> None:
        logger.info(
            "Threat on %s: %s -> %s (%d)",
            record.origin_surface,
            record.candidate.display_text,
            record.verdict.action,
            record.verdict.score,
        )

    def _log_notification(self, alert: ThreatAlert) -> None:
        logger.info("[%s] %s: %s (%s)", alert.severity, alert.title, alert.url, alert.source)

    def _health_snapshot(self) -> dict:
        summary = summarize(self.history.snapshot())
        stats = self.registry.protection_stats()
        uptime = (datetime.now(timezone.utc) - self._started_at).total_seconds()
        return {
            "status": "ok" if not self._stopped else "stopping",
            "uptime_seconds": int(uptime),
            "rules": len(self.catalog),
            "history_size": len(self.history),
            "alerts_raised": self.alerts.total_alerts,
            **stats,
            "summary": summary.to_dict(),
        }

    async def start(self):
        """Start the health endpoint, arm configured monitors and run until stopped."""
        logger.info("Starting PhishEye (%d rules)", len(self.catalog))
        await self.health_server.start()

        for monitor_id in self.config.armed_monitors:
            if monitor_id not in self.registry:
                logger.warning("Monitor %s is not available here; skipping", monitor_id)
                continue
            await self.registry.arm_monitor(monitor_id)

        logger.info("Pipeline running")
        await self._stop_event.wait()

    async def stop(self):
        """Disarm every monitor and stop the health endpoint. Safe to call twice."""
        async with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
            logger.info("Stopping PhishEye...")
            await self.registry.disarm_all()
            await self.health_server.stop()
            self._stop_event.set()
            logger.info("PhishEye stopped")


async def run_pipeline():
    """Run the PhishEye pipeline."""
    config = load_config()

    validation_errors = validate_config(config)
    if validation_errors:
        for err in validation_errors:
            logger.error(err)
        sys.exit(1)
    logging.getLogger().setLevel(config.log_level)

    pipeline = PhishEyePipeline(config)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(pipeline.stop()))

    try:
        await pipeline.start()
    except KeyboardInterrupt:
        pass
    finally:
        await pipeline.stop()


def main():
    """Entry point."""
    asyncio.run(run_pipeline())


if __name__ == "__main__":
    main()
