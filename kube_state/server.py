"""HTTP server exposing the metrics of all collectors."""

from collections.abc import Sequence
import logging

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST

from .collector import Collector
from .telemetry import Telemetry

__all__ = ["MetricsServer", "create_app"]

_LOGGER = logging.getLogger(__name__)

METRICS_PATH = "/metrics"
HEALTHZ_PATH = "/healthz"
TELEMETRY_PATH = "/telemetry"

_INDEX = f"""<html>
<head><title>Kube State Metrics</title></head>
<body>
<h1>Kube State Metrics</h1>
<ul>
<li><a href='{METRICS_PATH}'>metrics</a></li>
<li><a href='{TELEMETRY_PATH}'>telemetry</a></li>
<li><a href='{HEALTHZ_PATH}'>healthz</a></li>
</ul>
</body>
</html>
"""

COLLECTORS_KEY = web.AppKey("collectors", list[Collector])
TELEMETRY_KEY = web.AppKey("telemetry", Telemetry)


async def _metrics(request: web.Request) -> web.Response:
    collectors = request.app[COLLECTORS_KEY]
    body = "".join(collector.dump() for collector in collectors)
    return web.Response(
        body=body.encode(), headers={"Content-Type": CONTENT_TYPE_LATEST}
    )


async def _telemetry(request: web.Request) -> web.Response:
    telemetry = request.app[TELEMETRY_KEY]
    return web.Response(
        body=telemetry.generate(), headers={"Content-Type": CONTENT_TYPE_LATEST}
    )


async def _healthz(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def _index(request: web.Request) -> web.Response:
    return web.Response(text=_INDEX, content_type="text/html")


def create_app(
    collectors: Sequence[Collector], telemetry: Telemetry | None = None
) -> web.Application:
    """Create the web application serving the collectors."""
    app = web.Application()
    app[COLLECTORS_KEY] = list(collectors)
    app[TELEMETRY_KEY] = telemetry or Telemetry()
    app.router.add_get(METRICS_PATH, _metrics)
    app.router.add_get(TELEMETRY_PATH, _telemetry)
    app.router.add_get(HEALTHZ_PATH, _healthz)
    app.router.add_get("/", _index)
    return app


class MetricsServer:
    """Runs the web application on a TCP address."""

    def __init__(self, app: web.Application, host: str, port: int) -> None:
        self._runner = web.AppRunner(app)
        self._host = host
        self._port = port

    async def start(self) -> None:
        """Start serving requests."""
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        _LOGGER.info("Serving metrics on http://%s:%d%s", self._host, self._port, METRICS_PATH)

    async def stop(self) -> None:
        """Stop serving requests."""
        await self._runner.cleanup()
        _LOGGER.info("Metrics server stopped")
