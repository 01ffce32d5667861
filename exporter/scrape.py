#!/usr/bin/env python3
"""Fetch a Prometheus endpoint and print one line per metric family.

Usage: metrics-peek localhost:8080/metrics
"""
import argparse
import logging
import math
import sys
from typing import Dict, Iterable, List, NamedTuple

import requests
from prometheus_client.parser import text_string_to_metric_families

logger = logging.getLogger("exporter.scrape")

_DISTRIBUTION_TYPES = {"histogram", "gaugehistogram", "summary"}
_SHAPE_LABELS = {"le", "quantile"}
_TOTALS = {"_count": "count", "_sum": "sum", "_gcount": "count", "_gsum": "sum"}


class ScrapeError(Exception):
    """Raised when an endpoint cannot be fetched."""


class FamilyRow(NamedTuple):
    name: str
    type: str
    value: str


def normalize_url(endpoint: str) -> str:
    if not endpoint.startswith("http"):
        return f"http://{endpoint}"
    return endpoint


def fetch_metrics_text(url: str, timeout: float = 5.0) -> str:
    logger.debug("fetching metrics from %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise ScrapeError(f"could not fetch {url}: {exc}") from exc
    if resp.status_code != requests.codes.ok:
        raise ScrapeError(f"{url} answered HTTP {resp.status_code}")
    return resp.text


def _fmt(value: float) -> str:
    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _describe(family) -> str:
    series = {
        frozenset((k, v) for k, v in s.labels.items() if k not in _SHAPE_LABELS)
        for s in family.samples
    }
    if not series:
        return "-"
    if len(series) > 1:
        return f"({len(series)} series)"
    if family.type in _DISTRIBUTION_TYPES:
        by_suffix: Dict[str, float] = {}
        for s in family.samples:
            suffix = s.name[len(family.name):]
            if s.name.startswith(family.name) and suffix in _TOTALS:
                by_suffix[_TOTALS[suffix]] = s.value
        if "count" in by_suffix:
            text = f"count={_fmt(by_suffix['count'])}"
            if "sum" in by_suffix:
                text += f" sum={_fmt(by_suffix['sum'])}"
            return text
    return _fmt(family.samples[0].value)


def summarize(text: str) -> List[FamilyRow]:
    """Parse exposition text into rows, in input order. Raises ValueError."""
    families = list(text_string_to_metric_families(text))
    return [FamilyRow(f.name, f.type, _describe(f)) for f in families]


def render_table(rows: Iterable[FamilyRow]) -> str:
    rows = list(rows)
    header = FamilyRow("NAME", "TYPE", "VALUE")
    name_w = max(len(r.name) for r in rows + [header])
    type_w = max(len(r.type) for r in rows + [header])
    value_w = max(len(r.value) for r in rows + [header])
    lines = [
        f"{r.name.ljust(name_w)}  {r.type.center(type_w)}  {r.value.rjust(value_w)}"
        for r in [header] + rows
    ]
    return "\n".join(line.rstrip() for line in lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show the metric families exposed by a Prometheus endpoint.")
    parser.add_argument("endpoint", metavar="ENDPOINT", help="metrics URL, scheme optional")
    parser.add_argument("--timeout", type=float, default=5.0, help="request timeout in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    url = normalize_url(args.endpoint)
    try:
        rows = summarize(fetch_metrics_text(url, timeout=args.timeout))
    except ScrapeError as exc:
        logger.error("%s", exc)
        return 1
    except ValueError as exc:
        logger.error("Metrics from %s could not be parsed: %s", url, exc)
        return 1

    if not rows:
        print(f"No metrics exposed at {url}")
        return 0
    print(render_table(rows))
    return 0


if __name__ == "__main__":
    sys.exit(main())
