"""Unit tests for instrument registration."""
import pytest

from exporter.config import ConfigurationError
from exporter.metrics import build_metrics


def _bucket(registry, le):
    return registry.get_sample_value("request_duration_seconds_bucket", {"le": le})


def test_instruments_start_at_zero(metrics, registry):
    assert registry.get_sample_value("requests_total") == 0.0
    assert registry.get_sample_value("request_duration_seconds_count") == 0.0
    assert registry.get_sample_value("request_duration_seconds_sum") == 0.0


def test_fresh_registry_when_none_given():
    first = build_metrics()
    second = build_metrics()

    assert first.registry is not second.registry


def test_duplicate_registration_fails(metrics, registry):
    with pytest.raises(ConfigurationError, match="registration failed"):
        build_metrics(registry)


def test_observation_counts_in_buckets_at_or_above_value(metrics, registry):
    metrics.request_duration.observe(0.3)

    assert _bucket(registry, "0.25") == 0.0
    assert _bucket(registry, "0.5") == 1.0
    assert _bucket(registry, "10.0") == 1.0
    assert _bucket(registry, "+Inf") == 1.0
    assert registry.get_sample_value("request_duration_seconds_sum") == pytest.approx(0.3)


def test_observation_on_boundary_lands_in_that_bucket(metrics, registry):
    metrics.request_duration.observe(0.5)

    assert _bucket(registry, "0.25") == 0.0
    assert _bucket(registry, "0.5") == 1.0


def test_custom_buckets(registry):
    metrics = build_metrics(registry, buckets=(1, 2))
    metrics.request_duration.observe(1.5)

    assert _bucket(registry, "1.0") == 0.0
    assert _bucket(registry, "2.0") == 1.0
    assert _bucket(registry, "+Inf") == 1.0
