"""
Unit tests for threshold parsing, evaluation and the exit-code gate.

Evaluation runs against a real ``locust.stats.RequestStats`` populated
through its public ``log_request`` / ``log_error`` API, the same calls
Locust makes for every fired request event.  Response times are chosen
below 100 ms or as round thousands so Locust's bucketing leaves them
unchanged.
"""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from locust.stats import RequestStats

from loadtests.checks import CHECK_REQUEST_TYPE, GROUP_REQUEST_TYPE
from loadtests.thresholds import (
    EXIT_PASS,
    EXIT_THRESHOLD_BREACH,
    Threshold,
    evaluate_thresholds,
    gate,
    parse_threshold,
    parse_thresholds,
)

pytestmark = pytest.mark.unit


def _log(stats, method, name, response_time, *, count=1, failures=0):
    for _ in range(count):
        stats.log_request(method, name, response_time, 0)
    for _ in range(failures):
        stats.log_error(method, name, "failed")


@pytest.fixture
def stats():
    """Ten fast HTTP calls (one failed), ten checks (one failed), one slow group."""
    request_stats = RequestStats()
    _log(request_stats, "GET", "/health/ready [GET]", 50, count=10, failures=1)
    _log(request_stats, CHECK_REQUEST_TYPE, "status is 200", 0, count=10, failures=1)
    _log(request_stats, GROUP_REQUEST_TYPE, "Full Workflow", 12000, count=4)
    return request_stats


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def test_parse_percentile_threshold():
    """Test that ``p(95)<5000`` becomes a 95th-percentile upper bound."""
    # Act
    threshold = parse_threshold("http_req_duration", "p(95)<5000")

    # Assert
    assert threshold == Threshold(
        metric="http_req_duration", aggregation="p", operator="<", limit=5000.0, percentile=95.0,
    )
    assert threshold.expression == "p(95)<5000"
    assert threshold.label == "http_req_duration"


def test_parse_group_threshold_keeps_tag():
    """Test that the group name inside braces is kept as the tag."""
    # Act
    threshold = parse_threshold("group_duration{Full Workflow}", "p(95)<15000")

    # Assert
    assert threshold.metric == "group_duration"
    assert threshold.tag == "Full Workflow"
    assert threshold.label == "group_duration{Full Workflow}"


def test_parse_rate_threshold_with_spaces():
    """Test that whitespace around the operator is tolerated."""
    threshold = parse_threshold("checks", " rate > 0.9 ")

    assert (threshold.aggregation, threshold.operator, threshold.limit) == ("rate", ">", 0.9)


@pytest.mark.parametrize(
    ("metric", "expression"),
    [
        ("http_reqs", "count>1"),
        ("group_duration", "p(95)<1000"),
        ("http_req_duration", "p95<5000"),
        ("http_req_duration", "rate<0.1"),
        ("checks", "p(95)<1"),
        ("http_req_duration", "p(0)<10"),
        ("http_req_duration", "p(95)=5000"),
        ("Bad Metric", "rate<1"),
    ],
)
def test_parse_threshold_rejects_invalid(metric, expression):
    """Test that unknown metrics, bad syntax and mismatched aggregations are refused."""
    with pytest.raises(ValueError):
        parse_threshold(metric, expression)


def test_parse_thresholds_accepts_single_string():
    """Test that a bare string is treated as a one-element list."""
    # Act
    thresholds = parse_thresholds({"http_req_failed": "rate<0.1", "checks": ["rate>0.9", "count>10"]})

    # Assert
    assert [threshold.expression for threshold in thresholds] == ["rate<0.1", "rate>0.9", "count>10"]


def test_parse_thresholds_of_nothing():
    """Test that a missing section parses to no thresholds."""
    assert parse_thresholds(None) == []
    assert parse_thresholds({}) == []


# -----------------------------------------------------------------------------
# Evaluation
# -----------------------------------------------------------------------------


def test_http_duration_ignores_checks_and_groups(stats):
    """Test that the slow group does not inflate HTTP latency."""
    # Act
    (result,) = evaluate_thresholds(stats, [parse_threshold("http_req_duration", "p(95)<5000")])

    # Assert
    assert result.passed is True
    assert result.actual == 50


def test_http_failed_rate_counts_http_failures_only(stats):
    """Test that the failure rate is computed over HTTP entries."""
    # Act
    (result,) = evaluate_thresholds(stats, [parse_threshold("http_req_failed", "rate<0.1")])

    # Assert
    assert result.actual == pytest.approx(0.1)
    assert result.passed is False


def test_checks_rate_is_pass_ratio(stats):
    """Test that the checks rate is the share of passing checks."""
    # Act
    strict, relaxed = evaluate_thresholds(stats, parse_thresholds({"checks": ["rate>0.95", "rate>0.8"]}))

    # Assert
    assert strict.actual == pytest.approx(0.9)
    assert strict.passed is False
    assert relaxed.passed is True


def test_group_duration_uses_named_group(stats):
    """Test that group thresholds read only the matching group entry."""
    # Act
    within, breached = evaluate_thresholds(stats, parse_thresholds({
        "group_duration{Full Workflow}": ["p(95)<15000", "max<10000"],
    }))

    # Assert
    assert within.actual == 12000
    assert within.passed is True
    assert breached.passed is False


def test_missing_metric_passes_without_data(stats):
    """Test that a group that never ran is reported as no data and passes."""
    # Act
    (result,) = evaluate_thresholds(stats, [parse_threshold("group_duration{Admin Operations}", "p(95)<3000")])

    # Assert
    assert result.actual is None
    assert result.passed is True


def test_count_aggregation(stats):
    """Test that ``count`` reports the number of samples."""
    (result,) = evaluate_thresholds(stats, [parse_threshold("checks", "count>=10")])

    assert result.actual == 10
    assert result.passed is True


# -----------------------------------------------------------------------------
# Gate
# -----------------------------------------------------------------------------


def test_gate_sets_exit_code_on_breach(stats, capsys):
    """Test that a breached threshold fails the run."""
    # Arrange
    environment = SimpleNamespace(stats=stats, process_exit_code=None)

    # Act
    code = gate(environment, "authenticated_local", parse_thresholds({"http_req_failed": ["rate<0.05"]}))

    # Assert
    assert code == EXIT_THRESHOLD_BREACH
    assert environment.process_exit_code == EXIT_THRESHOLD_BREACH
    output = capsys.readouterr().out
    assert "Threshold Check: authenticated_local" in output
    assert "Overall: FAIL" in output


def test_gate_passes_run_with_failed_requests(stats, capsys):
    """Test that passing thresholds set a zero exit code even when requests failed."""
    # Arrange
    environment = SimpleNamespace(stats=stats, process_exit_code=None)

    # Act
    code = gate(environment, "qa_static_token", parse_thresholds({"http_req_duration": ["p(95)<10000"]}))

    # Assert
    assert code == EXIT_PASS
    assert environment.process_exit_code == EXIT_PASS
    assert "Overall: PASS" in capsys.readouterr().out


def test_gate_without_thresholds_is_a_pass(stats, capsys):
    """Test that a profile without thresholds prints nothing and passes."""
    # Arrange
    environment = SimpleNamespace(stats=stats, process_exit_code=1)

    # Act
    code = gate(environment, "bff", [])

    # Assert
    assert code == EXIT_PASS
    assert environment.process_exit_code == EXIT_PASS
    assert capsys.readouterr().out == ""
