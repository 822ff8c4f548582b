"""Minimal health/metrics server for PhishEye."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from aiohttp import web

from ..dashboard.summary import summarize_monitors
from ..errors import PermissionDenied
from ..monitors.registry import MonitorRegistry

logger = logging.getLogger(__name__)

# MonitorState counters exported on /metrics
MONITOR_COUNTERS = (
    "scans_performed",
    "threats_detected",
    "blocked_count",
    "quarantined_count",
    "allowed_count",
    "uptime_seconds",
)


class HealthServer:
    """Serves lightweight health, metrics and monitor toggle endpoints."""

    def __init__(
        self,
        host: str,
        port: int,
        status_provider: Callable[[], dict],
        registry: Optional[MonitorRegistry] = None,
        enabled: bool = True,
    ):
        self.host = host
        self.port = port
        self.status_provider = status_provider
        self.registry = registry
        self.enabled = enabled
        self.app = self._build_app()
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def _build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        app.router.add_get("/monitors", self._handle_monitors)
        app.router.add_post("/monitors/{monitor_id}/arm", self._handle_arm)
        app.router.add_post("/monitors/{monitor_id}/disarm", self._handle_disarm)
        return app

    async def start(self):
        """Start the health server."""
        if not self.enabled:
            logger.info("Health server disabled")
            return

        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Health server listening on %s:%s", self.host, self.port)

    async def stop(self):
        """Stop the health server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    def _status(self) -> dict:
        try:
            return dict(self.status_provider() or {})
        except Exception as exc:
            logger.warning("Health status provider failed: %s", exc)
            return {"status": "error", "message": str(exc)}

    async def _handle_health(self, request):  # noqa: ANN001
        """Return JSON health status."""
        payload = self._status()
        payload.setdefault("status", "ok")
        return web.json_response(payload, headers={"Access-Control-Allow-Origin": "*"})

    async def _handle_metrics(self, request):  # noqa: ANN001
        """Expose a handful of text metrics (Prometheus-ish)."""
        data = self._status()

        lines = []
        for key, value in data.items():
            metric_key = str(key).replace(".", "_").replace("-", "_")
            if isinstance(value, bool):
                lines.append(f"phisheye_{metric_key} {int(value)}")
            elif isinstance(value, (int, float)):
                lines.append(f"phisheye_{metric_key} {value}")

        if self.registry is not None:
            for monitor_id, snapshot in summarize_monitors(self.registry.states()).items():
                label = f'{{monitor="{monitor_id}"}}'
                lines.append(f"phisheye_monitor_armed{label} {int(snapshot['armed'])}")
                for counter in MONITOR_COUNTERS:
                    lines.append(f"phisheye_monitor_{counter}{label} {snapshot[counter]}")

        if not lines:
            lines.append('phisheye_status{state="empty"} 1')

        return web.Response(text="\n".join(lines) + "\n")

    def _require_registry(self) -> MonitorRegistry:
        if self.registry is None:
            raise web.HTTPNotFound(text="no monitors registered")
        return self.registry

    async def _handle_monitors(self, request):  # noqa: ANN001
        registry = self._require_registry()
        return web.json_response({"monitors": summarize_monitors(registry.states())})

    async def _handle_arm(self, request):  # noqa: ANN001
        registry = self._require_registry()
        monitor_id = request.match_info["monitor_id"]
        if monitor_id not in registry:
            raise web.HTTPNotFound(text=f"unknown monitor: {monitor_id}")
        monitor = registry.get(monitor_id)
        try:
            armed = await monitor.arm()
        except PermissionDenied as exc:
            logger.warning("Arm request for %s refused: %s", monitor_id, exc)
            return web.json_response(
                {"monitor_id": monitor_id, "armed": False, "error": str(exc) or "permission denied"},
                status=403,
            )
        return web.json_response({"monitor_id": monitor_id, "armed": armed})

    async def _handle_disarm(self, request):  # noqa: ANN001
        registry = self._require_registry()
        monitor_id = request.match_info["monitor_id"]
        if monitor_id not in registry:
            raise web.HTTPNotFound(text=f"unknown monitor: {monitor_id}")
        armed = await registry.disarm_monitor(monitor_id)
        return web.json_response({"monitor_id": monitor_id, "armed": armed})
