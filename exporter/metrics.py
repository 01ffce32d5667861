"""Prometheus instruments for the example exporter."""
import logging
from typing import Sequence

from prometheus_client import CollectorRegistry, Counter, Histogram

from exporter.config import DEFAULT_BUCKETS, ConfigurationError

logger = logging.getLogger("exporter.metrics")

REQUESTS_TOTAL = "requests_total"
REQUEST_DURATION = "request_duration_seconds"


class ExampleMetrics:
    """The counter and histogram registered on one registry."""

    def __init__(self, registry: CollectorRegistry, requests_total: Counter, request_duration: Histogram):
        self.registry = registry
        self.requests_total = requests_total
        self.request_duration = request_duration


def build_metrics(registry: CollectorRegistry = None, buckets: Sequence[float] = DEFAULT_BUCKETS) -> ExampleMetrics:
    """Create both instruments and register them on ``registry``.

    A fresh registry is created when none is given. Registering onto a
    registry that already holds one of the names raises ConfigurationError.
    """
    if registry is None:
        registry = CollectorRegistry()
    try:
        requests_total = Counter(REQUESTS_TOTAL, "Total number of requests", registry=registry)
        request_duration = Histogram(
            REQUEST_DURATION,
            "Duration of requests in seconds",
            buckets=tuple(buckets),
            registry=registry,
        )
    except ValueError as exc:
        # prometheus_client reports duplicated timeseries as ValueError
        raise ConfigurationError(f"metric registration failed: {exc}") from exc
    logger.debug("registered %s and %s (buckets=%s)", REQUESTS_TOTAL, REQUEST_DURATION, tuple(buckets))
    return ExampleMetrics(registry, requests_total, request_duration)
