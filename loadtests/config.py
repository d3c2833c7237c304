"""
Load-test configuration.

Defines environment-specific configuration classes for the load-test
suite.  Each class captures the target base URL and the credentials the
workflows need (static admin token, static user/BFF token, pre-generated
QA token, token-issuer URL and API key).  The ``get_config`` factory
selects the right class based on the ``LOAD_ENV`` environment variable
(or an explicit key); ``config_for_profile`` falls back to the environment
a traffic profile is written for.

Key Concepts Demonstrated:
- Class-based configuration with inheritance for DRY defaults
- Environment-variable overrides so one suite runs against any stack
- Credentials left unset (``None``) rather than faked, so workflows can
  detect missing configuration and bail out early
"""

from __future__ import annotations

import os


class Config:
    """
    Base (shared) configuration for every environment.

    Values are read once at import time, so variables must be set
    before Locust loads the locustfile.  Unset credentials
    stay ``None``.
    """

    # Root URL of the service under test.  Scripts append paths such as
    # ``/workflow-state`` to it.
    BASE_URL: str = os.environ.get("BASE_URL", "http://localhost:8080")

    # Static bearer token used by the BFF constant-load script.
    TOKEN: str | None = os.environ.get("TOKEN")

    # Admin bearer token for ``/admin/*`` routes.
    ADMIN_TOKEN: str | None = os.environ.get("ADMIN_TOKEN")

    # Pre-generated user JWT for the QA static-token script.
    QA_JWT_TOKEN: str | None = os.environ.get("QA_JWT_TOKEN")

    # Token issuance (production BFF flow).  The API key is sent verbatim
    # in the ``Authorization`` header of the issuance call.
    TOKEN_ISSUER_URL: str | None = os.environ.get("TOKEN_ISSUER_URL")
    FUSIONAUTH_API_KEY: str | None = os.environ.get("FUSIONAUTH_API_KEY")
    TOKEN_TTL_SECONDS: int = int(os.environ.get("TOKEN_TTL_SECONDS", "3600"))

    # Path hit by the static-token BFF script.
    BFF_PATH: str = os.environ.get("BFF_PATH", "/v1/some-endpoint")

    # Profile used when ``--load-profile`` is not given on the command line.
    DEFAULT_PROFILE: str = os.environ.get("LOAD_PROFILE", "authenticated_local")


class LocalConfig(Config):
    """
    Local docker stack.

    The local service accepts the admin token from its ``.env.local``
    (``ADMIN_AUTH_TOKEN=foobar``), so that value is the default here.
    """

    ADMIN_TOKEN: str | None = os.environ.get("ADMIN_TOKEN", "foobar")


class QaConfig(Config):
    """QA environment: remote API, user-level JWT supplied by the operator."""

    BASE_URL: str = os.environ.get("BASE_URL", "https://qa-1-api.d.bark.com")
    DEFAULT_PROFILE: str = os.environ.get("LOAD_PROFILE", "qa_static_token")


class ProductionConfig(Config):
    """
    Production BFF.

    No defaults for URLs or credentials: everything must come from the
    environment of the machine running the test.
    """

    DEFAULT_PROFILE: str = os.environ.get("LOAD_PROFILE", "bff_production")


# Lookup table mapping environment name strings to their config classes.
config = {
    "local": LocalConfig,
    "qa": QaConfig,
    "production": ProductionConfig,
    "default": LocalConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Return the configuration class for the given environment.

    Args:
        env: One of ``"local"``, ``"qa"``, or ``"production"``.  When
            *None*, the ``LOAD_ENV`` environment variable is consulted,
            falling back to ``"local"`` if unset.

    Returns:
        The ``Config`` subclass matching the requested environment,
        or ``LocalConfig`` if the key is unrecognised.
    """
    if env is None:
        env = os.environ.get("LOAD_ENV", "local")
    return config.get(env, config["default"])


# Environment each profile targets when ``LOAD_ENV`` is not set.
PROFILE_ENVIRONMENTS = {
    "authenticated_local": "local",
    "qa_static_token": "qa",
    "qa_health_check": "qa",
    "bff": "local",
    "bff_production": "production",
}


def config_for_profile(profile: str) -> type[Config]:
    """
    Return the configuration class a profile runs against.

    An explicit ``LOAD_ENV`` always wins; otherwise the profile's own
    environment from :data:`PROFILE_ENVIRONMENTS` is used, so
    ``--load-profile qa_static_token`` alone targets QA.
    """
    env = os.environ.get("LOAD_ENV") or PROFILE_ENVIRONMENTS.get(profile, "local")
    return get_config(env)
