# ruff: noqa: E402
"""
Locust entrypoint for the load tests.

This is the file that the ``locust`` CLI discovers and loads.  It
imports every concrete user class, adds a ``--load-profile`` option, and
wires up event listeners that

- load the selected profile from :file:`profiles.yml`, point the users
  at the environment it targets, and hand its scenarios to
  :class:`~loadtests.shapes.ScenarioShape`
- narrow the profile to the user classes named by ``--tags``
- log the profile's start/stop banners
- evaluate the profile's thresholds when Locust quits and set the
  process exit code

Usage examples::

    # Full local workflow (default profile with LOAD_ENV=local):
    locust -f loadtests/locustfile.py --headless

    # QA run with a pre-generated token (the profile targets QA):
    QA_JWT_TOKEN=... locust -f loadtests/locustfile.py --headless --load-profile qa_static_token

    # Production BFF with issued tokens:
    BASE_URL=... TOKEN_ISSUER_URL=... FUSIONAUTH_API_KEY=... \\
        locust -f loadtests/locustfile.py --headless --load-profile bff_production
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from locust import events
from locust.runners import WorkerRunner

# Locust may be invoked from any directory.  Inserting the project root
# onto ``sys.path`` guarantees that ``from loadtests.…`` imports resolve.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from loadtests.config import config_for_profile
from loadtests.profiles import Profile, available_profiles, load_profile
from loadtests.scenarios import authenticated_local, bff, qa_health_check, qa_static_token
from loadtests.scenarios.authenticated_local import EndpointStressUser, FullWorkflowUser, PeakLoadUser
from loadtests.scenarios.base import CONFIG, SellerProfileUser
from loadtests.scenarios.bff import BffJwtUser, BffStaticTokenUser
from loadtests.scenarios.qa_health_check import QaHealthCheckUser
from loadtests.scenarios.qa_static_token import QaStaticTokenUser
from loadtests.shapes import ScenarioDispatcher, ScenarioShape
from loadtests.thresholds import gate

logger = logging.getLogger(__name__)

__all__ = [
    "BffJwtUser",
    "BffStaticTokenUser",
    "EndpointStressUser",
    "FullWorkflowUser",
    "PeakLoadUser",
    "QaHealthCheckUser",
    "QaStaticTokenUser",
    "ScenarioShape",
]

# ``exec`` names used in profiles.yml.
EXEC_TO_USER_CLASS = {
    "full_workflow": FullWorkflowUser,
    "endpoint_stress": EndpointStressUser,
    "peak_load": PeakLoadUser,
    "qa_static_token": QaStaticTokenUser,
    "qa_health_check": QaHealthCheckUser,
    "bff_static_token": BffStaticTokenUser,
    "bff_jwt": BffJwtUser,
}

# Maps CLI ``--tags`` values to user classes, mirroring the ``@tag``
# decorators on the classes themselves.
TAG_TO_USER_CLASSES = {
    "authenticated_local": [FullWorkflowUser, EndpointStressUser, PeakLoadUser],
    "qa_static_token": [QaStaticTokenUser],
    "qa_health": [QaHealthCheckUser],
    "bff": [BffStaticTokenUser],
    "bff_production": [BffJwtUser],
}

# Banner hooks per profile.
PROFILE_HOOKS = {
    "authenticated_local": authenticated_local,
    "qa_static_token": qa_static_token,
    "qa_health_check": qa_health_check,
    "bff": bff,
    "bff_production": bff,
}

_active: dict[str, Profile] = {}


def exec_names_for_tags(tags: set[str]) -> set[str]:
    """Translate ``--tags`` values into the ``exec`` names of the tagged user classes."""
    tagged = {
        user_class
        for tag, user_classes in TAG_TO_USER_CLASSES.items()
        if tag in tags
        for user_class in user_classes
    }
    return {name for name, user_class in EXEC_TO_USER_CLASS.items() if user_class in tagged}


@events.init_command_line_parser.add_listener
def _add_profile_argument(parser, **_kwargs):
    parser.add_argument(
        "--load-profile",
        type=str,
        default=CONFIG.DEFAULT_PROFILE,
        choices=available_profiles(),
        help="Traffic profile from loadtests/profiles.yml",
    )


@events.init.add_listener
def _configure_profile(environment, **_kwargs):
    """
    Load the selected profile and configure the load shape with it.

    Locust's built-in tag filtering hides individual ``@task`` methods
    but still instantiates every user class, so the profile's scenarios
    are narrowed here and ``environment.user_classes`` is replaced with
    the classes that remain.
    """
    options = environment.parsed_options
    profile_name = getattr(options, "load_profile", None) or CONFIG.DEFAULT_PROFILE
    profile = load_profile(profile_name)

    selected_tags = set(getattr(options, "tags", None) or [])
    if selected_tags:
        narrowed = profile.select(exec_names_for_tags(selected_tags))
        if narrowed.scenarios:
            profile = narrowed

    user_classes = []
    for scenario in profile.scenarios:
        user_class = EXEC_TO_USER_CLASS[scenario.exec]
        if user_class not in user_classes:
            user_classes.append(user_class)
    environment.user_classes = user_classes

    # Every concrete user inherits host and settings from the base class.
    # ``--host`` still overrides the host when Locust starts the users.
    settings = config_for_profile(profile.name)
    SellerProfileUser.settings = settings
    SellerProfileUser.host = settings.BASE_URL

    if environment.shape_class is not None:
        environment.shape_class.configure(profile.scenarios, EXEC_TO_USER_CLASS)
        environment.dispatcher_class = ScenarioDispatcher

    _active["profile"] = profile
    logger.info(
        "Profile %s: %s (%s)",
        profile.name,
        profile.description,
        ", ".join(scenario.name for scenario in profile.scenarios),
    )


@events.test_start.add_listener
def _on_test_start(environment, **_kwargs):
    profile = _active.get("profile")
    if profile is None or isinstance(environment.runner, WorkerRunner):
        return
    hooks = PROFILE_HOOKS.get(profile.name)
    if hooks is not None:
        hooks.on_test_start()


@events.test_stop.add_listener
def _on_test_stop(environment, **_kwargs):
    profile = _active.get("profile")
    if profile is None or isinstance(environment.runner, WorkerRunner):
        return
    hooks = PROFILE_HOOKS.get(profile.name)
    if hooks is not None:
        hooks.on_test_stop()


@events.quitting.add_listener
def _check_thresholds(environment, **_kwargs):
    """Workers only see their own share of the stats; the master decides."""
    profile = _active.get("profile")
    if profile is None or isinstance(environment.runner, WorkerRunner):
        return
    gate(environment, profile.name, profile.thresholds)
