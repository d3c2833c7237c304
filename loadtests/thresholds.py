"""
Pass/fail thresholds evaluated against Locust statistics.

When a run ends, the locustfile's ``quitting`` listener evaluates the
selected profile's thresholds against ``environment.stats``, prints a
summary table, and sets ``environment.process_exit_code``:
:data:`EXIT_THRESHOLD_BREACH` if any threshold is breached, :data:`EXIT_PASS`
otherwise, so CI can gate on the exit code of the ``locust`` process alone.

Thresholds use the compact k6 expression syntax::

    http_req_duration: ["p(95)<5000"]   # 95th percentile latency, ms
    http_req_failed:   ["rate<0.1"]     # share of failed HTTP requests
    checks:            ["rate>0.9"]     # share of passing checks
    group_duration{Full Workflow}: ["p(95)<15000"]

Supported metrics:

- ``http_req_duration`` / ``http_req_failed`` -- every HTTP entry, i.e.
  everything except the synthetic ``CHECK`` and ``GROUP`` entries
- ``checks`` -- pass rate over all ``CHECK`` entries
- ``group_duration{<name>}`` -- the ``GROUP`` entry called *name*

A metric without samples (e.g. a group that never ran) passes and is
reported as ``no data``.

Key Concepts Demonstrated:
- Small regex-based expression parser with precise error messages
- Merging per-endpoint ``StatsEntry`` objects to compute suite-wide
  percentiles
- Human-readable summary table printed to stdout for CI logs
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from locust.stats import RequestStats, StatsEntry

from loadtests.checks import CHECK_REQUEST_TYPE, GROUP_REQUEST_TYPE

logger = logging.getLogger(__name__)

# Exit codes: 0 pass, 1 breach.  Failed requests alone never fail the run.
EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1

_SYNTHETIC_TYPES = {CHECK_REQUEST_TYPE, GROUP_REQUEST_TYPE}

_EXPRESSION = re.compile(
    r"^\s*(?P<aggregation>p\(\s*(?P<percentile>\d+(?:\.\d+)?)\s*\)|avg|min|max|med|rate|count)"
    r"\s*(?P<op><=|>=|==|<|>)\s*(?P<limit>-?\d+(?:\.\d+)?)\s*$"
)
_METRIC = re.compile(r"^(?P<base>[a-z_]+)(?:\{(?P<tag>[^{}]+)\})?$")

_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}

_TREND_METRICS = {"http_req_duration", "group_duration"}
_RATE_METRICS = {"http_req_failed", "checks"}
_TREND_AGGREGATIONS = {"p", "avg", "min", "max", "med", "count"}
_RATE_AGGREGATIONS = {"rate", "count"}


@dataclass(frozen=True)
class Threshold:
    """One parsed expression bound to a metric."""

    metric: str
    aggregation: str
    operator: str
    limit: float
    percentile: float | None = None
    tag: str | None = None

    @property
    def expression(self) -> str:
        aggregation = f"p({self.percentile:g})" if self.aggregation == "p" else self.aggregation
        return f"{aggregation}{self.operator}{self.limit:g}"

    @property
    def label(self) -> str:
        return f"{self.metric}{{{self.tag}}}" if self.tag else self.metric


@dataclass(frozen=True)
class ThresholdResult:
    """Outcome of one threshold: observed value (``None`` = no data) and verdict."""

    threshold: Threshold
    actual: float | None
    passed: bool


def parse_threshold(metric: str, expression: str) -> Threshold:
    """
    Parse *expression* (e.g. ``"p(95)<5000"``) for *metric*.

    Raises:
        ValueError: On an unknown metric, malformed expression, or an
            aggregation that does not apply to the metric.
    """
    metric_match = _METRIC.match(metric.strip())
    if not metric_match:
        raise ValueError(f"Malformed metric name: {metric!r}")

    base = metric_match.group("base")
    tag = metric_match.group("tag")
    if base not in _TREND_METRICS | _RATE_METRICS:
        raise ValueError(f"Unknown threshold metric: {metric!r}")
    if base == "group_duration" and not tag:
        raise ValueError("group_duration needs a group name, e.g. group_duration{Full Workflow}")

    match = _EXPRESSION.match(expression)
    if not match:
        raise ValueError(f"Malformed threshold expression for {metric}: {expression!r}")

    percentile_text = match.group("percentile")
    aggregation = "p" if percentile_text is not None else match.group("aggregation")
    allowed = _TREND_AGGREGATIONS if base in _TREND_METRICS else _RATE_AGGREGATIONS
    if aggregation not in allowed:
        raise ValueError(f"Aggregation {aggregation!r} does not apply to {base}")

    percentile = float(percentile_text) if percentile_text is not None else None
    if percentile is not None and not 0 < percentile <= 100:
        raise ValueError(f"Percentile out of range in {expression!r}")

    return Threshold(
        metric=base,
        aggregation=aggregation,
        operator=match.group("op"),
        limit=float(match.group("limit")),
        percentile=percentile,
        tag=tag.strip() if tag else None,
    )


def parse_thresholds(mapping: Mapping[str, Sequence[str]] | None) -> list[Threshold]:
    """Parse a ``{metric: [expression, ...]}`` mapping as found in ``profiles.yml``."""
    thresholds: list[Threshold] = []
    for metric, expressions in (mapping or {}).items():
        if isinstance(expressions, str):
            expressions = [expressions]
        thresholds.extend(parse_threshold(metric, expression) for expression in expressions)
    return thresholds


def _merged(stats: RequestStats, entries: Iterable[StatsEntry], name: str) -> StatsEntry:
    merged = StatsEntry(stats, name, "", use_response_times_cache=False)
    for entry in entries:
        merged.extend(entry)
    return merged


def _select(stats: RequestStats, threshold: Threshold) -> StatsEntry:
    entries = list(stats.entries.values())
    if threshold.metric in ("http_req_duration", "http_req_failed"):
        return _merged(stats, (e for e in entries if e.method not in _SYNTHETIC_TYPES), "http")
    if threshold.metric == "checks":
        return _merged(stats, (e for e in entries if e.method == CHECK_REQUEST_TYPE), "checks")
    return _merged(
        stats,
        (e for e in entries if e.method == GROUP_REQUEST_TYPE and e.name == threshold.tag),
        threshold.label,
    )


def _observe(entry: StatsEntry, threshold: Threshold) -> float | None:
    if entry.num_requests == 0:
        return None

    aggregation = threshold.aggregation
    if aggregation == "count":
        return float(entry.num_requests)
    if aggregation == "rate":
        # ``checks`` counts passes; ``http_req_failed`` counts failures.
        if threshold.metric == "checks":
            return 1.0 - entry.fail_ratio
        return entry.fail_ratio
    if aggregation == "p":
        return float(entry.get_response_time_percentile(threshold.percentile / 100.0))
    if aggregation == "avg":
        return float(entry.avg_response_time)
    if aggregation == "min":
        return float(entry.min_response_time or 0)
    if aggregation == "max":
        return float(entry.max_response_time)
    return float(entry.median_response_time)


def evaluate_thresholds(stats: RequestStats, thresholds: Iterable[Threshold]) -> list[ThresholdResult]:
    """Evaluate every threshold against *stats*, in order."""
    results = []
    for threshold in thresholds:
        actual = _observe(_select(stats, threshold), threshold)
        passed = actual is None or _OPERATORS[threshold.operator](actual, threshold.limit)
        results.append(ThresholdResult(threshold=threshold, actual=actual, passed=passed))
    return results


def print_summary(profile: str, results: Sequence[ThresholdResult]) -> bool:
    """Print a results table to stdout; returns the overall verdict."""
    passed = all(result.passed for result in results)

    print(f"Threshold Check: {profile}")
    print("-" * 78)
    print(f"{'Metric':<40}{'Actual':>12}{'Limit':>16}{'Status':>10}")
    print("-" * 78)
    for result in results:
        actual = "no data" if result.actual is None else f"{result.actual:.2f}"
        status = "PASS" if result.passed else "FAIL"
        print(f"{result.threshold.label:<40}{actual:>12}{result.threshold.expression:>16}{status:>10}")
    print("-" * 78)
    print(f"Overall: {'PASS' if passed else 'FAIL'}")
    return passed


def gate(environment: Any, profile: str, thresholds: Sequence[Threshold]) -> int:
    """
    Evaluate *thresholds* against ``environment.stats`` and set the exit code.

    The thresholds alone decide the verdict.  Locust would otherwise exit
    with 1 as soon as any request failed, including the expected 401/403
    responses the QA workflow checks for.

    Returns:
        ``EXIT_PASS`` or ``EXIT_THRESHOLD_BREACH``.
    """
    if not thresholds:
        environment.process_exit_code = EXIT_PASS
        return EXIT_PASS

    results = evaluate_thresholds(environment.stats, thresholds)
    if print_summary(profile, results):
        environment.process_exit_code = EXIT_PASS
        return EXIT_PASS

    for result in results:
        if not result.passed:
            logger.error("Threshold breached: %s %s (actual %s)", result.threshold.label, result.threshold.expression, result.actual)
    environment.process_exit_code = EXIT_THRESHOLD_BREACH
    return EXIT_THRESHOLD_BREACH
