"""Runtime configuration from environment variables and CLI flags."""
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence, Tuple

DEFAULT_BUCKETS: Tuple[float, ...] = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)


class ConfigurationError(ValueError):
    """Raised when the exporter cannot be configured as requested."""


@dataclass(frozen=True)
class ExporterConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    path: str = "/metrics"
    interval: float = 5.0
    buckets: Tuple[float, ...] = field(default=DEFAULT_BUCKETS)
    log_level: str = "INFO"

    def __post_init__(self):
        if not 0 <= self.port <= 65535:
            raise ConfigurationError(f"port must be in 0-65535, got {self.port}")
        if not self.path.startswith("/"):
            raise ConfigurationError(f"path must start with '/', got {self.path!r}")
        if not math.isfinite(self.interval) or self.interval <= 0:
            raise ConfigurationError(f"interval must be positive, got {self.interval}")
        if not self.buckets:
            raise ConfigurationError("at least one histogram bucket is required")
        # +Inf is allowed as the last bound only
        if not all(math.isfinite(b) for b in self.buckets[:-1]) or not (
                math.isfinite(self.buckets[-1]) or self.buckets[-1] == math.inf):
            raise ConfigurationError(f"buckets must be finite numbers, got {self.buckets}")
        if any(lo >= hi for lo, hi in zip(self.buckets, self.buckets[1:])):
            raise ConfigurationError(f"buckets must be strictly increasing, got {self.buckets}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"unknown log level {self.log_level!r}")


def parse_buckets(raw: str) -> Tuple[float, ...]:
    """Parse ``"0.1,0.5,1"`` into a bucket tuple."""
    try:
        return tuple(float(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ConfigurationError(f"invalid bucket list {raw!r}: {exc}") from exc


def _number(env: Mapping[str, str], key: str, cast, default):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key}={raw!r} is not a valid {cast.__name__}") from exc


def load_config(env: Optional[Mapping[str, str]] = None) -> ExporterConfig:
    """Build an :class:`ExporterConfig` from ``env`` (defaults to ``os.environ``).

    Recognised variables: METRICS_HOST, METRICS_PORT, METRICS_PATH,
    UPDATE_INTERVAL, HISTOGRAM_BUCKETS, LOG_LEVEL.
    """
    env = os.environ if env is None else env
    defaults = ExporterConfig()
    buckets: Sequence[float] = defaults.buckets
    if env.get("HISTOGRAM_BUCKETS"):
        buckets = parse_buckets(env["HISTOGRAM_BUCKETS"])
    return ExporterConfig(
        host=env.get("METRICS_HOST", defaults.host),
        port=_number(env, "METRICS_PORT", int, defaults.port),
        path=env.get("METRICS_PATH", defaults.path),
        interval=_number(env, "UPDATE_INTERVAL", float, defaults.interval),
        buckets=tuple(buckets),
        log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
    )
