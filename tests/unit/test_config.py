"""
Unit tests for environment-specific configuration.

Config classes read the environment at import time, so tests that
depend on defaults clear the relevant variables and reload the module.
"""

from __future__ import annotations

import importlib

import pytest

import loadtests.config

pytestmark = pytest.mark.unit

_VARIABLES = (
    "BASE_URL",
    "TOKEN",
    "ADMIN_TOKEN",
    "QA_JWT_TOKEN",
    "TOKEN_ISSUER_URL",
    "FUSIONAUTH_API_KEY",
    "TOKEN_TTL_SECONDS",
    "BFF_PATH",
    "LOAD_PROFILE",
    "LOAD_ENV",
)


@pytest.fixture
def clean_config(monkeypatch):
    """Reload the config module with none of its variables set, then restore it."""
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    yield importlib.reload(loadtests.config)
    monkeypatch.undo()
    importlib.reload(loadtests.config)


def test_get_config_by_name(clean_config):
    """Test that each environment name resolves to its class."""
    assert clean_config.get_config("local") is clean_config.LocalConfig
    assert clean_config.get_config("qa") is clean_config.QaConfig
    assert clean_config.get_config("production") is clean_config.ProductionConfig


def test_get_config_falls_back_to_local(clean_config):
    """Test that unknown or unset environments use the local stack."""
    assert clean_config.get_config("staging") is clean_config.LocalConfig
    assert clean_config.get_config() is clean_config.LocalConfig


def test_get_config_reads_load_env(clean_config, monkeypatch):
    """Test that ``LOAD_ENV`` picks the environment when none is given."""
    # Arrange
    monkeypatch.setenv("LOAD_ENV", "qa")

    # Act / Assert
    assert clean_config.get_config() is clean_config.QaConfig


def test_local_defaults(clean_config):
    """Test that the local stack works out of the box."""
    local = clean_config.LocalConfig

    assert local.BASE_URL == "http://localhost:8080"
    assert local.ADMIN_TOKEN == "foobar"
    assert local.DEFAULT_PROFILE == "authenticated_local"
    assert local.TOKEN_TTL_SECONDS == 3600
    assert local.BFF_PATH == "/v1/some-endpoint"


def test_remote_environments_have_no_credentials(clean_config):
    """Test that QA and production never default a credential."""
    for config_class in (clean_config.QaConfig, clean_config.ProductionConfig):
        assert config_class.ADMIN_TOKEN is None
        assert config_class.QA_JWT_TOKEN is None
        assert config_class.TOKEN_ISSUER_URL is None
        assert config_class.FUSIONAUTH_API_KEY is None


def test_environment_specific_profiles(clean_config):
    """Test that each environment has its own default profile and URL."""
    assert clean_config.QaConfig.BASE_URL == "https://qa-1-api.d.bark.com"
    assert clean_config.QaConfig.DEFAULT_PROFILE == "qa_static_token"
    assert clean_config.ProductionConfig.DEFAULT_PROFILE == "bff_production"


def test_environment_overrides(monkeypatch, clean_config):
    """Test that variables set before import override the defaults."""
    # Arrange
    monkeypatch.setenv("BASE_URL", "https://bff.example.test")
    monkeypatch.setenv("TOKEN_TTL_SECONDS", "120")

    # Act
    reloaded = importlib.reload(loadtests.config)

    # Assert
    assert reloaded.ProductionConfig.BASE_URL == "https://bff.example.test"
    assert reloaded.Config.TOKEN_TTL_SECONDS == 120


def test_config_for_profile_uses_profile_environment(clean_config):
    """Test that each profile targets its own environment when ``LOAD_ENV`` is unset."""
    assert clean_config.config_for_profile("qa_static_token") is clean_config.QaConfig
    assert clean_config.config_for_profile("qa_health_check") is clean_config.QaConfig
    assert clean_config.config_for_profile("bff_production") is clean_config.ProductionConfig
    assert clean_config.config_for_profile("authenticated_local") is clean_config.LocalConfig


def test_config_for_profile_honours_load_env(clean_config, monkeypatch):
    """Test that an explicit ``LOAD_ENV`` overrides the profile's environment."""
    # Arrange
    monkeypatch.setenv("LOAD_ENV", "local")

    # Act / Assert
    assert clean_config.config_for_profile("qa_static_token") is clean_config.LocalConfig
