"""
Helper utilities for the load-test workflows.

Provides the building blocks that every workflow relies on: synthetic
identifier generation, bearer-header construction and randomised payload
factories for the seller-profile endpoints.  Keeping these in a shared
module avoids duplication across scenario files and makes it easy to
adjust data-generation strategies in one place.

Key Concepts Demonstrated:
- Collision-resistant profile identifiers using a random base-36 suffix
- Randomised payloads (via Faker) to defeat server-side caching
"""

from __future__ import annotations

import random
import string
from typing import Any

from faker import Faker

fake = Faker("en_GB")

# Sites handed to the scraper.  The first one is a real seller site; the
# rest are cheap, always-up pages that keep scrape latency predictable.
TEST_WEBSITES = (
    "https://www.bristolpersonaltrainer.com/",
    "https://example.com",
    "https://google.com",
    "https://github.com",
)

SCRAPE_CATEGORY = "Personal Trainer"
SERVICES_OFFERED = ["Personal Training", "Fitness Coaching"]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def auth_header(token: str) -> dict[str, str]:
    """
    Build standard bearer auth headers for API requests.

    Args:
        token: An admin token or user JWT.

    Returns:
        A dictionary suitable for passing as ``headers`` to Locust
        request methods.
    """
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def unique_profile_id(prefix: str = "load_test") -> str:
    """Return ``<prefix>_<9 random base-36 chars>``, e.g. ``load_test_k3j9x0q2a``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{suffix}"


def random_user_id(low: int = 1000, high: int = 10999) -> int:
    """Pick a synthetic user id in ``[low, high]``."""
    return random.randint(low, high)


def random_website() -> str:
    """Pick one of :data:`TEST_WEBSITES`."""
    return random.choice(TEST_WEBSITES)


def scrape_payload(seller_profile_id: str, user_id: int, website: str) -> dict[str, Any]:
    """Body for ``POST /admin/initiate-scrape``."""
    return {
        "seller_profile_id": seller_profile_id,
        "user_id": str(user_id),
        "category": SCRAPE_CATEGORY,
        "url": website,
    }


def validated_data_payload(seller_profile_id: str | None = None) -> dict[str, Any]:
    """
    Body for ``POST /validated-data`` in the admin workflow.

    User-token calls identify the profile through the JWT, so
    *seller_profile_id* is optional and omitted when ``None``.
    """
    payload: dict[str, Any] = {
        "business_name": f"{fake.company()} Fitness",
        "services_offered": list(SERVICES_OFFERED),
        "location": f"{fake.city()}, UK",
    }
    if seller_profile_id is not None:
        payload = {"seller_profile_id": seller_profile_id, **payload}
    return payload


def final_profile_payload(seller_profile_id: str | None = None) -> dict[str, Any]:
    """
    Body for ``POST /submit-final-profile``.

    Same shape as :func:`validated_data_payload` plus a free-text
    ``business_description``.
    """
    payload = validated_data_payload(seller_profile_id)
    payload["business_name"] = f"{payload['business_name']} Final"
    payload["business_description"] = fake.catch_phrase()
    return payload


def qa_business_payload(user_id: int) -> dict[str, Any]:
    """
    Validated-data body used against QA.

    Richer than the admin payload: street address, phone, opening hours
    and a per-user website so QA data is easy to find and clean up.
    """
    return {
        "business_name": f"QA Static Token Test {user_id}",
        "address": "123 QA Test Street, Test City, TS 12345",
        "location": "QA Test City, Test State",
        "phone": "+1-555-QA1-TEST",
        "website": f"https://qa-static-test-{user_id}.com",
        "business_hours": {
            "monday": "9:00 AM - 6:00 PM",
            "tuesday": "9:00 AM - 6:00 PM",
        },
        "services": ["QA Testing", "Load Testing", "Performance Testing"],
    }


def qa_final_profile_payload(user_id: int) -> dict[str, Any]:
    """Final-profile body used against QA."""
    return {
        "business_name": f"QA Static Token Test {user_id}",
        "services_offered": ["QA Testing", "Load Testing"],
        "location": "QA Test City, Test State",
        "business_description": f"QA testing with static token. Business ID: {user_id}",
    }
