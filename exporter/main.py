"""Entrypoint for the example exporter."""
import argparse
import asyncio
import logging
import os
import signal
import sys

from exporter import __version__
from exporter.config import ConfigurationError, ExporterConfig, load_config
from exporter.metrics import build_metrics
from exporter.server import BindError, MetricsServer
from exporter.updater import MetricsUpdater

logger = logging.getLogger("exporter")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve an example counter and histogram for Prometheus.")
    parser.add_argument("--host", help="listen address (env METRICS_HOST)")
    parser.add_argument("--port", help="listen port, 0 for any free port (env METRICS_PORT)")
    parser.add_argument("--path", help="exposition path (env METRICS_PATH)")
    parser.add_argument("--interval", help="seconds between updates (env UPDATE_INTERVAL)")
    parser.add_argument("--buckets", help="comma-separated histogram buckets (env HISTOGRAM_BUCKETS)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(level: str):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def serve(config: ExporterConfig, stop: asyncio.Event = None) -> int:
    """Register instruments, bind, run the updater until ``stop`` is set."""
    metrics = build_metrics(buckets=config.buckets)

    server = MetricsServer(metrics.registry, host=config.host, port=config.port, path=config.path)
    server.start()

    updater = MetricsUpdater(metrics, interval=config.interval)
    updater.start()

    loop = asyncio.get_running_loop()
    handled = []
    if stop is None:
        stop = asyncio.Event()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, stop.set)
            except NotImplementedError:
                continue
            handled.append(sig)

    try:
        await stop.wait()
        logger.info("shutdown requested")
    finally:
        for sig in handled:
            loop.remove_signal_handler(sig)
        await updater.stop()
        # shutdown() waits for the serve_forever poll; keep it off the loop
        await loop.run_in_executor(None, server.stop)
    return 0


def _flag_environment(args: argparse.Namespace) -> dict:
    """Environment with CLI flags layered on top, keyed by variable name."""
    env = dict(os.environ)
    flags = {
        "METRICS_HOST": args.host,
        "METRICS_PORT": args.port,
        "METRICS_PATH": args.path,
        "UPDATE_INTERVAL": args.interval,
        "HISTOGRAM_BUCKETS": args.buckets,
        "LOG_LEVEL": "DEBUG" if args.verbose else None,
    }
    env.update({k: v for k, v in flags.items() if v is not None})
    return env


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(_flag_environment(args))
    except ConfigurationError as exc:
        configure_logging("INFO")
        logger.error("invalid configuration: %s", exc)
        sys.exit(1)

    configure_logging(config.log_level)
    try:
        return asyncio.run(serve(config))
    except ConfigurationError as exc:
        logger.error("configuration error: %s", exc)
    except BindError as exc:
        logger.error("bind error: %s", exc)
    sys.exit(1)


if __name__ == "__main__":
    sys.exit(main())
