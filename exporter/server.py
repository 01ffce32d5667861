"""HTTP server exposing a registry in the Prometheus text format."""
import logging
from http.server import ThreadingHTTPServer
from threading import Thread
from typing import Optional
from urllib.parse import urlparse

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import MetricsHandler

logger = logging.getLogger("exporter.server")


class BindError(Exception):
    """Raised when the listener cannot acquire its address."""


class ExpositionHandler(MetricsHandler):
    """Serve ``registry`` on ``metrics_path`` only; everything else is 404."""

    metrics_path = "/metrics"

    def do_GET(self):
        if urlparse(self.path).path != self.metrics_path:
            self.send_error(404, "Not Found")
            return
        super().do_GET()

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


class MetricsServer:
    def __init__(self, registry: CollectorRegistry, *, host: str = "0.0.0.0",
                 port: int = 8080, path: str = "/metrics"):
        self.registry = registry
        self.host = host
        self.path = path
        self._requested_port = port
        self._httpd: Optional[ThreadingHTTPServer] = None
        self._thread: Optional[Thread] = None

    @property
    def port(self) -> int:
        """Bound port once started, the requested one before that."""
        if self._httpd is not None:
            return self._httpd.server_address[1]
        return self._requested_port

    def start(self):
        handler = ExpositionHandler.factory(self.registry)
        handler.metrics_path = self.path
        try:
            httpd = ThreadingHTTPServer((self.host, self._requested_port), handler)
        except OSError as exc:
            raise BindError(f"cannot listen on {self.host}:{self._requested_port}: {exc.strerror or exc}") from exc
        self._httpd = httpd
        self._thread = Thread(target=httpd.serve_forever, name="metrics-http", daemon=True)
        self._thread.start()
        logger.info("Prometheus metrics at %s:%d%s", self.host, self.port, self.path)

    def stop(self):
        httpd, self._httpd = self._httpd, None
        if httpd is None:
            return
        httpd.shutdown()
        httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("metrics server stopped")
