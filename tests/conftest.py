# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import logging
import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from stingy_vpn.core.reference import INITIAL_INSTANCE_ID, ParameterPaths
from tests.fixtures import FakeComputePlatform, FakeDnsProvider, InMemoryStateStore, SleepRecorder

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "ci"))

PREFIX = "/stingy-vpn/test"
TOKEN = "cf-test-token"


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Keep logging configuration and bound context from leaking between tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def paths() -> ParameterPaths:
    return ParameterPaths(PREFIX)


@pytest.fixture
def store(paths: ParameterPaths) -> InMemoryStateStore:
    """State store as provisioning leaves it: sentinel reference plus DNS token."""
    return InMemoryStateStore(
        {
            paths.instance_id: INITIAL_INSTANCE_ID,
            paths.cloudflare_token: TOKEN,
        }
    )


@pytest.fixture
def compute() -> FakeComputePlatform:
    return FakeComputePlatform(launch_ids=["i-new"])


@pytest.fixture
def dns() -> FakeDnsProvider:
    return FakeDnsProvider()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
