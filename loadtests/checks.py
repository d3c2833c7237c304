"""
Named checks and timed groups on top of Locust request events.

Locust records one success/failure per request.  The workflows in this
suite want finer-grained assertions: several named checks per response
(status, latency, body content) aggregated into an overall pass rate,
plus wall-clock timings for multi-request groups.  Both are reported
through the HTTP session's ``request_event`` hook so they flow into the
regular Locust statistics (and CSV output) next to the HTTP entries:

- each check becomes a ``CHECK`` entry named after the check
- each group becomes a ``GROUP`` entry whose response time is the group
  duration in milliseconds

:mod:`loadtests.thresholds` reads those entries back when evaluating the
``checks`` and ``group_duration`` thresholds.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

CHECK_REQUEST_TYPE = "CHECK"
GROUP_REQUEST_TYPE = "GROUP"

Predicate = Callable[[Any], bool]


class CheckFailed(Exception):
    """Recorded as the exception of a failed ``CHECK`` entry."""


def elapsed_ms(response: Any) -> float:
    """Server round-trip of *response* in milliseconds."""
    return response.elapsed.total_seconds() * 1000.0


def body_text(response: Any) -> str:
    """Response body as text; ``""`` when there is none."""
    return response.text or ""


def status_is(*codes: int) -> Predicate:
    """Predicate: status code is one of *codes*."""
    return lambda response: response.status_code in codes


def faster_than(limit_ms: float) -> Predicate:
    """Predicate: response arrived in under *limit_ms* milliseconds."""
    return lambda response: elapsed_ms(response) < limit_ms


def body_contains(text: str) -> Predicate:
    """Predicate: body contains *text*."""
    return lambda response: text in body_text(response)


def body_not_empty(response: Any) -> bool:
    """Predicate: body is not empty."""
    return len(body_text(response)) > 0


def _fire(client: Any, request_type: str, name: str, response_time: float, exception: Exception | None) -> None:
    client.request_event.fire(
        request_type=request_type,
        name=name,
        response_time=response_time,
        response_length=0,
        response=None,
        context={},
        exception=exception,
    )


def check(client: Any, response: Any, checks: Mapping[str, Predicate]) -> bool:
    """
    Evaluate named predicates against one response.

    Every predicate is evaluated even after an earlier one fails, so each
    check contributes to the pass rate.  A predicate that raises counts
    as a failed check.

    Args:
        client: The Locust HTTP session that issued the request.
        response: The response to inspect.
        checks: Check name mapped to a predicate taking the response.

    Returns:
        ``True`` if every check passed.
    """
    all_passed = True
    for name, predicate in checks.items():
        try:
            passed = bool(predicate(response))
            error = None if passed else CheckFailed(name)
        except Exception as exc:
            passed = False
            error = CheckFailed(f"{name}: {exc!r}")

        _fire(client, CHECK_REQUEST_TYPE, name, 0, error)
        all_passed = all_passed and passed
    return all_passed


@contextmanager
def group(client: Any, name: str) -> Iterator[None]:
    """Time the enclosed block and record it as a ``GROUP`` entry called *name*."""
    started = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - started) * 1000.0
        _fire(client, GROUP_REQUEST_TYPE, name, duration_ms, None)
