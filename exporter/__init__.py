"""Example Prometheus exporter: one counter, one histogram, one updater loop."""

__version__ = "0.1.0"
