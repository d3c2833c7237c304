"""
Shared pytest fixtures for the load-test suite.

The workflows only ever talk to a Locust ``HttpSession`` through
``get``/``post`` and fire synthetic events through its
``request_event`` hook.  :class:`FakeClient` implements exactly that
surface in memory, so workflows can be exercised without Locust
running and without any network traffic.

Key SDET Concepts Demonstrated:
- Lightweight stub objects that satisfy the interface contract
- Canned responses routed by method and path
- Recording pauses instead of sleeping to keep the suite fast
"""

from __future__ import annotations

import json
from datetime import timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest


class _FakeResponse:
    """Minimal stand-in for the Locust/``requests`` response object."""

    def __init__(self, status_code: int = 200, text: str = "{}", elapsed_ms: float = 50.0):
        self.status_code = status_code
        self.text = text
        self.elapsed = timedelta(milliseconds=elapsed_ms)
        self.outcome: tuple[str, str | None] | None = None

    def json(self) -> Any:
        return json.loads(self.text)

    # ``catch_response=True`` API
    def success(self) -> None:
        self.outcome = ("success", None)

    def failure(self, message: str) -> None:
        self.outcome = ("failure", message)

    def __enter__(self) -> _FakeResponse:
        return self

    def __exit__(self, *_exc: Any) -> bool:
        return False


class FakeClient:
    """
    In-memory replacement for ``locust.clients.HttpSession``.

    Responses are looked up by ``(method, path)`` where *path* is the URL
    without its query string; unknown routes answer ``200 {}``.  Every
    call is recorded in :attr:`calls`.
    """

    def __init__(self, routes: dict[tuple[str, str], _FakeResponse] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[SimpleNamespace] = []
        self.request_event = MagicMock()

    def route(self, method: str, path: str, status_code: int = 200, text: str = "{}") -> _FakeResponse:
        response = _FakeResponse(status_code=status_code, text=text)
        self.routes[(method, path)] = response
        return response

    def _respond(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append(SimpleNamespace(method=method, url=url, kwargs=kwargs))
        path = url.split("?", 1)[0]
        return self.routes.get((method, path)) or _FakeResponse()

    def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        return self._respond("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        return self._respond("POST", url, **kwargs)

    @property
    def paths(self) -> list[tuple[str, str]]:
        return [(call.method, call.url.split("?", 1)[0]) for call in self.calls]

    def fired(self, request_type: str) -> list[dict[str, Any]]:
        """Keyword arguments of every ``request_event.fire`` of *request_type*."""
        return [
            call.kwargs
            for call in self.request_event.fire.call_args_list
            if call.kwargs["request_type"] == request_type
        ]


@pytest.fixture
def client():
    """Provide a fresh fake session per test so recorded calls never leak."""
    return FakeClient()


@pytest.fixture
def pauses():
    """
    Record pauses instead of sleeping.

    Pass ``pause=pauses.append`` to a workflow and assert on the list.
    """
    return []


@pytest.fixture
def make_response():
    """Factory for canned responses used outside of a :class:`FakeClient`."""
    return _FakeResponse
