"""
Shared abstract Locust user classes for the load-test scenarios.

Provides two layers of abstraction that concrete scenarios build on:

1. :class:`SellerProfileUser` -- points Locust at the configured base URL
   and exposes the active configuration class.
2. :class:`StaticTokenUser` / :class:`IssuedTokenUser` -- resolve the
   bearer credentials a workflow needs, either once from configuration
   or through the token issuer on every iteration.

Concrete user classes only declare a ``@task`` that hands the resolved
credentials to a workflow function.
"""

from __future__ import annotations

import logging

from locust import HttpUser, constant
from locust.exception import StopUser

from loadtests.auth import TokenIssuer
from loadtests.config import Config, get_config

logger = logging.getLogger(__name__)

CONFIG = get_config()


class SellerProfileUser(HttpUser):
    """
    Base user bound to the service under test.

    ``abstract = True`` tells Locust not to spawn this class directly --
    only its concrete subclasses.
    """

    abstract = True
    host = CONFIG.BASE_URL
    # Workflows pace themselves with explicit pauses between steps.
    wait_time = constant(0)
    settings: type[Config] = CONFIG


class StaticTokenUser(SellerProfileUser):
    """
    Base user whose bearer token comes straight from configuration.

    Attributes:
        token_setting: Name of the :class:`~loadtests.config.Config`
            attribute holding the token.
        token: The resolved token, ``None`` when unset.  Workflows decide
            what a missing token means (usually: log and skip).
    """

    abstract = True
    token_setting = "ADMIN_TOKEN"

    token: str | None

    def on_start(self) -> None:
        """Resolve the configured token once per virtual user."""
        self.token = getattr(self.settings, self.token_setting)
        if not self.token:
            logger.error("%s is not set; %s iterations will be skipped", self.token_setting, type(self).__name__)


class IssuedTokenUser(SellerProfileUser):
    """
    Base user that obtains a fresh JWT from the issuer on every iteration.

    The issuer settings are checked once at start: without an issuer URL
    and API key there is nothing useful this user can do, so it stops.
    """

    abstract = True

    issuer: TokenIssuer

    def on_start(self) -> None:
        self.issuer = TokenIssuer.from_config(self.settings)
        if not self.issuer.configured:
            logger.error("TOKEN_ISSUER_URL and FUSIONAUTH_API_KEY are required for %s", type(self).__name__)
            raise StopUser("Token issuer not configured")
