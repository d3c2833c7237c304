"""
Authenticated load test against the local stack.

Three user classes, one per scenario of the ``authenticated_local``
profile.  The first two authenticate with the static admin token
(``ADMIN_TOKEN``, ``foobar`` by default for the local ``.env.local``):

- :class:`FullWorkflowUser` -- the complete seller-profile journey
  (scrape, workflow state, validated data, final profile)
- :class:`EndpointStressUser` -- high-frequency hits on a random cheap
  endpoint (health, workflow state, docs)
- :class:`PeakLoadUser` -- unauthenticated readiness probe paced by the
  arrival-rate executor

Key Concepts Demonstrated:
- One profile, several concurrently running traffic shapes
- Thin user classes: all request logic lives in ``loadtests.workflows``
"""

from __future__ import annotations

import logging

from locust import tag, task

from loadtests.scenarios.base import SellerProfileUser, StaticTokenUser
from loadtests.workflows import run_endpoint_stress, run_full_workflow, run_peak_load

logger = logging.getLogger(__name__)

PROFILE = "authenticated_local"


@tag(PROFILE)
class FullWorkflowUser(StaticTokenUser):
    """Admin walking one fresh seller profile through every step."""

    @task
    def full_workflow(self) -> None:
        if not self.token:
            return
        run_full_workflow(self.client, admin_token=self.token)


@tag(PROFILE)
class EndpointStressUser(StaticTokenUser):
    """Hammer individual endpoints with almost no think-time."""

    @task
    def endpoint_stress(self) -> None:
        if not self.token:
            return
        run_endpoint_stress(self.client, admin_token=self.token)


@tag(PROFILE)
class PeakLoadUser(SellerProfileUser):
    """
    Readiness probe at a fixed arrival rate.

    ``wait_time`` is replaced by the ``constant-arrival-rate`` descriptor
    when the profile is loaded.
    """

    @task
    def peak_load(self) -> None:
        run_peak_load(self.client)


def on_test_start() -> None:
    logger.info("Starting authenticated load test against %s", FullWorkflowUser.host)


def on_test_stop() -> None:
    logger.info("Authenticated Load Test Completed!")
    logger.info("This tested the FULL seller-profile-improvement-service workflow")
    logger.info("Including authentication, scraping, data validation, and profile submission")
    logger.info("Check the results above for performance bottlenecks")
    logger.info("Pay attention to LangGraph API calls - they are likely the slowest part")
