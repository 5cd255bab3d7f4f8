"""HTTP server exposing the metrics endpoint and a landing page.

Routes:
    <telemetry path>  Prometheus exposition of the registry
    /                 HTML page linking to the metrics
    anything else     404

Requests are handled on threads, so scrapes can overlap; the orchestrator
serializes them.
"""

import logging
from collections.abc import Callable, Iterable
from socketserver import ThreadingMixIn
from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

from project_exporter.config import ConfigurationError

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>GitHub Project Exporter</title></head>
<body>
<h1>GitHub Project Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split 'host:port' (host may be empty or a bracketed IPv6 literal).

    Raises:
        ConfigurationError: If the port is missing or not a valid number
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ConfigurationError(f"invalid listen address: {address}")
    host = host.strip("[]") or "0.0.0.0"
    return host, int(port)


def create_app(registry: CollectorRegistry, telemetry_path: str = "/metrics") -> Callable:
    """Build the WSGI application serving `registry` at `telemetry_path`."""
    metrics_app = make_wsgi_app(registry)
    landing = LANDING_PAGE.format(path=telemetry_path).encode("utf-8")

    def app(environ: dict[str, Any], start_response: Callable) -> Iterable[bytes]:
        path = environ.get("PATH_INFO") or "/"
        if path == telemetry_path:
            return metrics_app(environ, start_response)
        if path == "/":
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [landing]
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app


def serve(
    registry: CollectorRegistry,
    listen_address: str = "0.0.0.0:9410",
    telemetry_path: str = "/metrics",
) -> None:
    """Serve until interrupted."""
    host, port = parse_listen_address(listen_address)
    httpd = make_server(
        host, port, create_app(registry, telemetry_path),
        server_class=_ThreadingWSGIServer,
        handler_class=_LoggingHandler,
    )
    logger.info("Listening on %s:%d (metrics at %s)", host, port, telemetry_path)
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
