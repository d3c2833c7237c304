"""
BFF load tests.

Two environment-specific variants share this module and are kept
separate on purpose:

- :class:`BffStaticTokenUser` (profile ``bff``) -- constant load on one
  BFF path with the static ``TOKEN``
- :class:`BffJwtUser` (profile ``bff_production``) -- every iteration
  issues its own JWT through the token issuer, then runs the user
  workflow with it
"""

from __future__ import annotations

import logging

from locust import tag, task

from loadtests.scenarios.base import IssuedTokenUser, StaticTokenUser
from loadtests.workflows import run_bff_jwt, run_bff_static

logger = logging.getLogger(__name__)


@tag("bff")
class BffStaticTokenUser(StaticTokenUser):
    """Fixed-pace GETs with the shared ``TOKEN``."""

    token_setting = "TOKEN"

    @task
    def bff_static_token(self) -> None:
        run_bff_static(self.client, token=self.token, path=self.settings.BFF_PATH)


@tag("bff_production")
class BffJwtUser(IssuedTokenUser):
    """User workflow with a freshly issued JWT per iteration."""

    @task
    def bff_jwt(self) -> None:
        run_bff_jwt(self.client, issuer=self.issuer)


def on_test_start() -> None:
    logger.info("Starting BFF load test against %s", StaticTokenUser.host)


def on_test_stop() -> None:
    logger.info("BFF load test completed")
