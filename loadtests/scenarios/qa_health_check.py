"""
Unauthenticated readiness probe of the QA environment.

A single user polling ``/health/ready``, used to confirm QA is up before
a token-based run.  No credentials are read or sent.
"""

from __future__ import annotations

import logging

from locust import tag, task

from loadtests.scenarios.base import SellerProfileUser
from loadtests.workflows import run_health_check

logger = logging.getLogger(__name__)


@tag("qa_health")
class QaHealthCheckUser(SellerProfileUser):
    """Readiness probe, no auth."""

    @task
    def qa_health_check(self) -> None:
        run_health_check(self.client, label="QA")


def on_test_start() -> None:
    logger.info("Starting QA health check against %s", QaHealthCheckUser.host)


def on_test_stop() -> None:
    logger.info("QA health check completed")
