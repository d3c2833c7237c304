"""
Workflow functions: one simulated journey per call.

Each function performs a fixed, linear sequence of HTTP calls against
the seller-profile service using the Locust session it is given.  The
Locust user classes in :mod:`loadtests.scenarios` are thin wrappers that
call exactly one of these per task iteration.

Execution inside a workflow is strictly sequential and blocking.  A step
whose status differs from the expected one is logged and, where later
steps depend on it, the rest of the journey is skipped.  Nothing is
retried.  Pauses between steps go through the injectable *pause*
callable (``time.sleep`` by default, which Locust's gevent patching turns
into a cooperative sleep).

Key Concepts Demonstrated:
- Workflows as plain functions with explicit inputs (client, tokens)
  instead of state captured on the user object
- Guard conditionals that short-circuit dependent steps
- Named checks + timed groups for fine-grained pass rates
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loadtests.auth import TokenIssuer
from loadtests.checks import (
    body_contains,
    body_not_empty,
    body_text,
    check,
    faster_than,
    group,
    status_is,
)
from loadtests.helpers import (
    auth_header,
    final_profile_payload,
    qa_business_payload,
    qa_final_profile_payload,
    random_user_id,
    random_website,
    scrape_payload,
    unique_profile_id,
    validated_data_payload,
)

logger = logging.getLogger(__name__)

Pause = Callable[[float], None]

# Locust groups URLs by ``name``; query strings would otherwise create one
# stats row per profile id.
WORKFLOW_STATE_NAME = "/workflow-state [GET]"


@dataclass(frozen=True)
class EndpointSpec:
    """One candidate target of the endpoint stress test."""

    name: str
    url: str
    headers: dict[str, str]
    expected_status: int = 200


# ---------------------------------------------------------------------------
# Admin workflows (local stack, static admin token)
# ---------------------------------------------------------------------------


def run_full_workflow(
    client: Any,
    *,
    admin_token: str,
    website: str | None = None,
    pause: Pause = time.sleep,
) -> bool:
    """
    Run the complete admin journey for a fresh seller profile.

    Steps: initiate scrape -> check workflow state -> submit validated
    data -> submit final profile.  A failed scrape ends the journey since
    every later step needs the profile it creates.

    Returns:
        ``True`` if every step returned its expected status.
    """
    seller_profile_id = unique_profile_id("load_test")
    user_id = random_user_id()
    headers = auth_header(admin_token)
    target = website or random_website()

    with group(client, "Full Workflow"):
        with group(client, "Admin Operations"):
            response = client.post(
                "/admin/initiate-scrape",
                json=scrape_payload(seller_profile_id, user_id, target),
                headers=headers,
                name="/admin/initiate-scrape [POST]",
            )
            check(client, response, {
                "scrape initiation status is 200": status_is(200),
                "scrape response time < 3s": faster_than(3000),
                "scrape response contains status": body_contains("status"),
            })

        if response.status_code != 200:
            logger.info("Scrape failed: %s - %s", response.status_code, body_text(response))
            return False

        pause(1)

        with group(client, "User Operations"):
            state = client.get(
                f"/workflow-state?seller_profile_id={seller_profile_id}",
                headers=headers,
                name=WORKFLOW_STATE_NAME,
            )
            check(client, state, {
                "workflow state status is 200": status_is(200),
                "workflow state response time < 2s": faster_than(2000),
                "workflow state contains data": body_not_empty,
            })

            pause(0.5)

            validated = client.post(
                "/validated-data",
                json=validated_data_payload(seller_profile_id),
                headers=headers,
                name="/validated-data [POST]",
            )
            check(client, validated, {
                "validated data status is 200 or 202": status_is(200, 202),
                "validated data response time < 5s": faster_than(5000),
            })

            pause(1)

            final = client.post(
                "/submit-final-profile",
                json=final_profile_payload(seller_profile_id),
                headers=headers,
                name="/submit-final-profile [POST]",
            )
            check(client, final, {
                "final profile submission status is 200 or 202": status_is(200, 202),
                "final profile response time < 3s": faster_than(3000),
            })

    return (
        state.status_code == 200
        and validated.status_code in (200, 202)
        and final.status_code in (200, 202)
    )


def stress_endpoints(admin_token: str, seller_profile_id: str) -> list[EndpointSpec]:
    """Endpoints the stress test picks from; health and docs are unauthenticated."""
    return [
        EndpointSpec(name="health_check", url="/health/ready", headers={}),
        EndpointSpec(
            name="workflow_state",
            url=f"/workflow-state?seller_profile_id={seller_profile_id}",
            headers=auth_header(admin_token),
        ),
        EndpointSpec(name="docs", url="/docs", headers={}),
    ]


def run_endpoint_stress(
    client: Any,
    *,
    admin_token: str,
    pause: Pause = time.sleep,
) -> bool:
    """Hit one randomly chosen endpoint with high frequency."""
    seller_profile_id = unique_profile_id("stress_test")
    endpoint = random.choice(stress_endpoints(admin_token, seller_profile_id))

    with group(client, f"Endpoint Stress - {endpoint.name}"):
        response = client.get(endpoint.url, headers=endpoint.headers, name=f"{endpoint.name} [GET]")
        passed = check(client, response, {
            f"{endpoint.name} status is {endpoint.expected_status}": status_is(endpoint.expected_status),
            f"{endpoint.name} response time < 2s": faster_than(2000),
        })

    pause(0.1)
    return passed


def run_peak_load(client: Any) -> bool:
    """Single readiness probe; the arrival-rate executor supplies the pressure."""
    with group(client, "Peak Load"):
        response = client.get("/health/ready", name="/health/ready [GET]")
        return check(client, response, {
            "peak load health check OK": status_is(200),
            "peak load response < 1s": faster_than(1000),
        })


# ---------------------------------------------------------------------------
# User workflows (QA / BFF, user bearer token)
# ---------------------------------------------------------------------------


def _log_step_outcome(step: str, response: Any) -> None:
    """Explain a user-token step result in terms of likely causes."""
    if response.status_code == 200:
        logger.info("%s successful", step)
    elif response.status_code == 401:
        logger.error("%s: authentication failed - token may be expired or invalid", step)
        logger.error("   Response: %s", body_text(response))
    elif response.status_code == 403:
        logger.error("%s: access forbidden - token valid but insufficient permissions", step)
        logger.error("   Response: %s", body_text(response))
    else:
        logger.error("%s failed: %s %s", step, response.status_code, body_text(response))


def _user_steps(
    client: Any,
    *,
    token: str,
    user_id: int,
    label: str,
    validated_payload: dict[str, Any],
    final_payload: dict[str, Any],
    pause: Pause,
    validated_pause: float,
) -> bool:
    """
    Workflow state -> validated data -> final profile, each gated on a 200.

    *label* prefixes the check names (``"QA workflow state status 200"``)
    so different scripts keep separate check rows.
    """
    headers = auth_header(token)

    logger.info("1. Checking workflow state for user %s...", user_id)
    response = client.get("/workflow-state", headers=headers, name=WORKFLOW_STATE_NAME)
    check(client, response, {
        f"{label} workflow state status 200": status_is(200),
        f"{label} workflow state status 401 (auth issue)": status_is(401),
        f"{label} workflow state status 403 (permissions)": status_is(403),
        f"{label} workflow state has response": body_not_empty,
    })
    _log_step_outcome("Workflow state check", response)

    pause(1)

    if response.status_code != 200:
        return False

    logger.info("2. Submitting validated data...")
    response = client.post(
        "/validated-data",
        json=validated_payload,
        headers=headers,
        name="/validated-data [POST]",
    )
    check(client, response, {
        f"{label} validated data status 200": status_is(200),
        f"{label} validated data status 401": status_is(401),
        f"{label} validated data status 403": status_is(403),
        f"{label} validated data returns response": body_not_empty,
    })
    _log_step_outcome("Validated data submission", response)

    pause(validated_pause)

    if response.status_code != 200:
        return False

    logger.info("3. Submitting final profile...")
    response = client.post(
        "/submit-final-profile",
        json=final_payload,
        headers=headers,
        name="/submit-final-profile [POST]",
    )
    check(client, response, {
        f"{label} final profile status 200": status_is(200),
        f"{label} final profile status 401": status_is(401),
        f"{label} final profile status 403": status_is(403),
        f"{label} final profile returns response": body_not_empty,
    })
    _log_step_outcome("Final profile submission", response)

    return response.status_code == 200


def run_qa_workflow(
    client: Any,
    *,
    token: str | None,
    user_id: int | None = None,
    pause: Pause = time.sleep,
) -> bool:
    """
    Light user journey against QA with a pre-generated JWT.

    Without a token nothing is sent: the operator is told how to provide
    one and the iteration ends.
    """
    if user_id is None:
        user_id = random.randint(0, 99)

    logger.info("QA Static Token Test - Testing workflow for user %s", user_id)

    if not token:
        logger.error("QA_JWT_TOKEN environment variable is required")
        logger.error("   Set it with: export QA_JWT_TOKEN=your_generated_token")
        logger.error(
            "   Or run: QA_JWT_TOKEN=your_token locust -f loadtests/locustfile.py --load-profile qa_static_token"
        )
        return False

    logger.info("Using pre-generated JWT token (length: %s chars)", len(token))

    with group(client, "QA User Workflow"):
        passed = _user_steps(
            client,
            token=token,
            user_id=user_id,
            label="QA",
            validated_payload=qa_business_payload(user_id),
            final_payload=qa_final_profile_payload(user_id),
            pause=pause,
            validated_pause=2,
        )

    pause(3)
    return passed


def run_health_check(client: Any, *, label: str = "QA") -> bool:
    """Unauthenticated readiness probe; passes on 200 with ``ready`` in the body."""
    logger.info("Checking %s environment health...", label)
    response = client.get("/health/ready", name="/health/ready [GET]")
    passed = check(client, response, {
        f"{label} health check status 200": status_is(200),
        f"{label} service is ready": body_contains("ready"),
    })

    if response.status_code == 200:
        logger.info("%s environment is healthy", label)
    else:
        logger.error("%s environment health check failed: %s", label, response.status_code)
    return passed


def run_bff_static(
    client: Any,
    *,
    token: str | None,
    path: str,
    pause: Pause = time.sleep,
) -> bool:
    """Constant BFF load with one shared bearer token."""
    if not token:
        logger.error("TOKEN environment variable is required")
        return False

    response = client.get(path, headers=auth_header(token), name=f"{path} [GET]")
    passed = check(client, response, {"is status 200": status_is(200)})

    pause(1)
    return passed


def run_bff_jwt(
    client: Any,
    *,
    issuer: TokenIssuer,
    user_id: int | None = None,
    pause: Pause = time.sleep,
) -> bool:
    """
    Issue a JWT for a random user, then run the user journey with it.

    The token lives only for this call.  If issuance fails the service is
    never contacted.
    """
    if user_id is None:
        user_id = random_user_id()

    token = issuer.issue(client, user_id)
    if token is None:
        logger.error("No token issued for user %s, skipping BFF workflow", user_id)
        return False

    with group(client, "User Operations"):
        passed = _user_steps(
            client,
            token=token,
            user_id=user_id,
            label="BFF",
            validated_payload=validated_data_payload(),
            final_payload=final_profile_payload(),
            pause=pause,
            validated_pause=1,
        )

    pause(1)
    return passed
