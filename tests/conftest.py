"""Pytest configuration and shared fixtures for acceptance and integration tests."""

import os

import pytest
from dotenv import load_dotenv

from api_harness.common.common import ConfigurationError
from api_harness.config import HarnessConfig
from api_harness.log import configure_logging


def load_harness_config() -> HarnessConfig:
    """
    Build the run configuration for a test session.

    Requests are served by the in-memory stub unless ``USE_STUB=false`` is set,
    so the suite runs without network access by default.
    """
    load_dotenv()
    try:
        return HarnessConfig.from_env({"USE_STUB": "true", **os.environ})
    except ConfigurationError as err:
        pytest.exit(str(err), returncode=2)


@pytest.fixture(scope="session")
def harness_config() -> HarnessConfig:
    config = load_harness_config()
    configure_logging(config)
    return config
