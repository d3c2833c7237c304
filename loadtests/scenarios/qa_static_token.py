"""
QA functional load test with a pre-generated JWT.

Light traffic (at most two users) that checks whether a manually issued
user token works against the QA environment end to end, without any
dependency on the token issuer.  Each check distinguishes 200, 401
(token expired or malformed) and 403 (token valid, wrong permissions) so
the run summary tells the operator which one it was.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from locust import tag, task

from loadtests.auth import token_expiry
from loadtests.scenarios.base import StaticTokenUser
from loadtests.workflows import run_qa_workflow

logger = logging.getLogger(__name__)

PROFILE = "qa_static_token"


@tag(PROFILE)
class QaStaticTokenUser(StaticTokenUser):
    """User journey with the token from ``QA_JWT_TOKEN``."""

    token_setting = "QA_JWT_TOKEN"

    @task
    def qa_static_token(self) -> None:
        run_qa_workflow(self.client, token=self.token)


def on_test_start() -> None:
    token = QaStaticTokenUser.settings.QA_JWT_TOKEN

    logger.info("Starting QA Static Token Test")
    logger.info("Purpose: Test QA endpoints with your pre-generated JWT token")
    logger.info("Testing against: %s", QaStaticTokenUser.host)
    logger.info("Light load: Max 2 concurrent users")

    if not token:
        logger.info("No token provided - test will fail")
        return

    logger.info("Token provided (%s characters)", len(token))
    expires_at = token_expiry(token)
    if expires_at is not None and expires_at <= datetime.now(timezone.utc):
        logger.warning("Token expired at %s - expect 401s", expires_at.isoformat())


def on_test_stop() -> None:
    logger.info("QA Static Token Test Completed!")
    logger.info("This tested your manually generated JWT token with:")
    logger.info("   - QA environment endpoints")
    logger.info("   - Complete workflow without FusionAuth dependency")
    logger.info("   - Real authentication (your actual token)")
    logger.info("Results:")
    logger.info("   - If 200s: Your token works! You can scale up testing")
    logger.info("   - If 401s: Token expired or malformed")
    logger.info("   - If 403s: Token valid but wrong permissions")
    logger.info("   - If 500s: Service issues (not auth related)")
