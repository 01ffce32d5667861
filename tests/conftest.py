"""Common test fixtures and utilities."""
import socket

import pytest
from prometheus_client import CollectorRegistry

from exporter.metrics import build_metrics
from exporter.server import MetricsServer

ENV_VARS = (
    "METRICS_HOST", "METRICS_PORT", "METRICS_PATH",
    "UPDATE_INTERVAL", "HISTOGRAM_BUCKETS", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment out of config loading."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def registry():
    """A registry isolated from the process-wide default one."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    return build_metrics(registry)


@pytest.fixture
def metrics_server(metrics):
    """Exposition server on a free loopback port."""
    server = MetricsServer(metrics.registry, host="127.0.0.1", port=0)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def metrics_url(metrics_server):
    return f"http://127.0.0.1:{metrics_server.port}/metrics"



@pytest.fixture
def free_port():
    """A loopback port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
